"""Structural checks of SBF executables using pyelftools."""

from __future__ import annotations

import io
from typing import Any, Dict

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from .engine import EngineLoadError

EM_BPF = 247
EM_SBF = 263
_ACCEPTED_MACHINES = {"EM_BPF", "EM_SBF", EM_BPF, EM_SBF}


def inspect_sbf_elf(elf: bytes) -> Dict[str, Any]:
    """Check that ``elf`` is a loadable SBF image and describe it.

    Only the container is checked: 64-bit little-endian ELF, BPF or SBF machine, a shared object
    with a ``.text`` section. Instructions are left to the engine's verifier.

    Parameters
    ----------
    elf : bytes
        The executable image.

    Returns
    -------
    Dict[str, Any]
        ``machine``, ``entry``, ``sections`` and ``text_size`` of the image.

    Raises
    ------
    EngineLoadError
        If the image is not an SBF shared object.
    """
    try:
        elffile = ELFFile(io.BytesIO(elf))
        header = elffile.header
        machine = header["e_machine"]
        elf_type = header["e_type"]
        sections = [s.name for s in elffile.iter_sections()]
        text = elffile.get_section_by_name(".text")
        text_size = text.data_size if text is not None else 0
    except (ELFError, ValueError) as e:
        raise EngineLoadError(f"invalid ELF: {e}") from e

    if elffile.elfclass != 64:
        raise EngineLoadError(f"expected a 64-bit ELF, got {elffile.elfclass}-bit")
    if not elffile.little_endian:
        raise EngineLoadError("expected a little-endian ELF")
    if machine not in _ACCEPTED_MACHINES:
        raise EngineLoadError(f"unsupported machine {machine}")
    if elf_type != "ET_DYN":
        raise EngineLoadError(f"expected a shared object, got {elf_type}")
    if text is None or text_size == 0:
        raise EngineLoadError("no .text section")

    return {
        "machine": machine,
        "entry": header["e_entry"],
        "sections": sections,
        "text_size": text_size,
    }
