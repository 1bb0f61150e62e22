"""VCF header extraction and parsing.

The header is dumped with ``bcftools view --header-only`` so that compressed,
indexed VCFs are handled transparently, then parsed into a ``VcfHeader``
holding the declared INFO/FILTER/FORMAT/contig IDs and the plain
``##key=value`` meta-information lines.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from .utils import run_command

logger = logging.getLogger("vcfprep")

# ##INFO=<ID=DP,Number=1,...> and friends
STRUCTURED_RE = re.compile(r"^##(?P<key>[^=<>]+)=<(?P<body>.*)>\s*$")
ID_RE = re.compile(r"(?:^|,)ID=(?P<id>[^,>]+)")
# ##fileformat=VCFv4.2, ##source=longcallD, ...
SIMPLE_RE = re.compile(r"^##(?P<key>[^=<>]+)=(?P<value>[^<].*)$")


@dataclass
class VcfHeader:
    """Meta-information parsed from a VCF header."""

    declared: dict[str, set[str]] = field(default_factory=dict)
    meta: list[tuple[str, str]] = field(default_factory=list)
    samples: list[str] = field(default_factory=list)

    def ids(self, section: str) -> set[str]:
        """IDs declared in a structured section such as 'INFO' or 'FILTER'."""
        return self.declared.get(section, set())

    def declares(self, tag: str, section: str | None = None) -> bool:
        """Return True if ``tag`` is declared, in ``section`` or in any section."""
        if section is not None:
            return tag in self.ids(section)
        return any(tag in ids for ids in self.declared.values())

    def meta_values(self, key: str) -> list[str]:
        """Values of the plain ``##key=value`` lines with the given key."""
        return [value for k, value in self.meta if k == key]

    def caller_origins(self) -> list[str]:
        """Caller names recorded in ``##source=`` lines."""
        return [value.strip() for value in self.meta_values("source")]

    def mentions_caller(self, caller: str) -> bool:
        """Return True if the header records ``caller`` as the origin of the calls.

        Matches a ``##source=`` value containing the caller name or a
        meta-information key starting with it (e.g. ``##longcallDCommand=`` or
        ``##longcallD=<Version=...>``).
        Descriptions, comments and sample names are not searched.
        """
        if any(caller in origin for origin in self.caller_origins()):
            return True
        return any(key.startswith(caller) for key, _ in self.meta)


def parse_header_text(header_text: str) -> VcfHeader:
    """Parse the text of a VCF header.

    Parameters
    ----------
    header_text : str
        Header lines as printed by ``bcftools view --header-only``.

    Returns
    -------
    VcfHeader
        Parsed header; empty if the text holds no header lines.
    """
    header = VcfHeader()

    for line in header_text.splitlines():
        if line.startswith("#CHROM"):
            columns = line.rstrip("\n").split("\t")
            header.samples = columns[9:]
            continue

        m = STRUCTURED_RE.match(line)
        if m:
            id_match = ID_RE.search(m.group("body"))
            if id_match:
                header.declared.setdefault(m.group("key"), set()).add(id_match.group("id"))
            else:
                # e.g. ##longcallD=<Version=0.0.4,Command=...>
                header.meta.append((m.group("key"), m.group("body")))
            continue

        m = SIMPLE_RE.match(line)
        if m:
            header.meta.append((m.group("key"), m.group("value")))

    return header


def extract_header(
    vcf_path: str | Path, output_file: str | Path, bcftools: str = "bcftools"
) -> Path:
    """Write the header of ``vcf_path`` to ``output_file``.

    Raises
    ------
    subprocess.CalledProcessError
        If bcftools fails.
    """
    cmd = [bcftools, "view", "--header-only", str(vcf_path)]
    run_command(cmd, output_file=str(output_file))
    return Path(output_file)


def read_header_file(header_file: str | Path) -> VcfHeader:
    """Parse a header previously written by ``extract_header``."""
    # Headers before VCFv4.3 may carry Latin-1 bytes in descriptions
    with open(header_file, "r", encoding="utf-8", errors="replace") as fh:
        header_text = fh.read()
    if not header_text:
        logger.warning("Empty VCF header in %s", header_file)
    return parse_header_text(header_text)
