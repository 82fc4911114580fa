# inputs.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_INPUT_SUFFIXES
from .errors import NoInputsFound
from .model import InputFile, Sample

# A sample prefix must be followed by one of these, so "sample_1" is never
# a match for "sample_10_S1_L001_R1_001.fastq.gz".
SEPARATORS = ("_", ".", "-")


def scan_directory(directory: str | Path) -> List[Path]:
    """Regular files directly under `directory`, sorted. Missing dir -> []."""
    d = Path(directory)
    if not d.is_dir():
        return []
    return sorted(p for p in d.iterdir() if p.is_file())


class InputMatcher:
    """
    Resolves which raw files belong to which declared sample.

    A file is claimed by the longest declared sample name that is a
    separator-bounded prefix of its basename. Every raw file therefore
    maps to at most one sample.
    """

    def __init__(
        self,
        declared_samples: Iterable[str],
        *,
        suffixes: Sequence[str] = DEFAULT_INPUT_SUFFIXES,
        directory: str | Path | None = None,
    ):
        self.declared: Tuple[str, ...] = tuple(declared_samples)
        self.suffixes = tuple(suffixes)
        self.directory = Path(directory) if directory is not None else None
        # longest first so the first hit is the most specific name
        self._by_length = sorted(set(self.declared), key=len, reverse=True)

    def _is_raw(self, name: str) -> bool:
        return any(name.endswith(s) for s in self.suffixes)

    @staticmethod
    def _bounded_prefix(name: str, sample: str) -> bool:
        return (
            len(name) > len(sample)
            and name.startswith(sample)
            and name[len(sample)] in SEPARATORS
        )

    def owner_of(self, path: str | Path) -> Optional[str]:
        """Declared sample that claims `path`, or None."""
        name = Path(path).name
        if not self._is_raw(name):
            return None
        for sample in self._by_length:
            if self._bounded_prefix(name, sample):
                return sample
        return None

    def match(self, sample_name: str, listing: Iterable[str | Path]) -> Tuple[InputFile, ...]:
        """
        Ordered input files for one sample.

        Sorted by basename (then full path) because the vendor tool pairs
        reads by argument order.
        """
        paths = [Path(p) for p in listing]
        owned = [p for p in paths if self.owner_of(p) == sample_name]
        if not owned:
            directory = self.directory
            if directory is None:
                directory = paths[0].parent if paths else Path(".")
            raise NoInputsFound(sample=sample_name, directory=directory)

        owned.sort(key=lambda p: (p.name, str(p)))
        return tuple(InputFile.from_path(p, sample_name) for p in owned)

    def build_sample(self, sample_name: str, listing: Iterable[str | Path]) -> Sample:
        return Sample(name=sample_name, inputs=self.match(sample_name, listing))

    def assign(self, listing: Iterable[str | Path]) -> Dict[str, Tuple[InputFile, ...]]:
        """Partition a listing over every declared sample (declaration order)."""
        paths = list(listing)
        return {s: self.match(s, paths) for s in self.declared}

    def unassigned(self, listing: Iterable[str | Path]) -> List[Path]:
        """Raw-read files in the listing that no declared sample claims."""
        out = []
        for p in listing:
            p = Path(p)
            if self._is_raw(p.name) and self.owner_of(p) is None:
                out.append(p)
        return sorted(out)
