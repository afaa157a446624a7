"""
The variables templates are expanded against.

A context is a snapshot of the process environment taken once at the entry
point, normalized so templates can be written without knowing how the host
spells its variables, plus caller-supplied overrides.
"""
import os
from typing import Iterator, Mapping, Optional

# Windows exposes e.g. PROGRAMFILES(X86); templates use PROGRAMFILES_X86.
_KEY_REWRITES = (("(X86)", "_X86"),)


def normalize_key(key: str) -> str:
    key = key.upper()
    for old, new in _KEY_REWRITES:
        key = key.replace(old, new)
    return key


class EnvironmentContext(Mapping[str, str]):
    """
    Immutable mapping of variable name to value.

    Environment-derived keys are upper-cased and de-mangled. Overrides are
    stored as given and win over environment entries with the same name.
    """

    def __init__(self, data: Optional[Mapping[str, str]] = None):
        self._data = dict(data or {})

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> "EnvironmentContext":
        source = os.environ if environ is None else environ
        data = {}
        for key, value in source.items():
            if not key:
                continue
            data[normalize_key(key)] = value
        if overrides:
            data.update(overrides)
        return cls(data)

    def with_overrides(self, overrides: Mapping[str, str]) -> "EnvironmentContext":
        data = dict(self._data)
        data.update(overrides)
        return EnvironmentContext(data)

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"EnvironmentContext({len(self._data)} variables)"
