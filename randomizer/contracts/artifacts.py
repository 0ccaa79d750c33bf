"""
randomizer.contracts.artifacts
==============================

Load compiled contract artifacts (ABI + creation bytecode).

Supported shapes
----------------
* Truffle      : build/contracts/<Name>.json
                 {"contractName", "abi", "bytecode": "0x…", "networks": {...}}
* Foundry      : out/<Name>.sol/<Name>.json
                 {"abi", "bytecode": {"object": "0x…"}}
* Plain JSON   : artifacts/<Name>.json  {"abi", "bytecode"}

`find_artifact(name, dirs)` searches the directories in order and returns the
first match.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..errors import ArtifactError

JsonDict = Dict[str, Any]


@dataclass(frozen=True)
class ContractArtifact:
    contract_name: str
    abi: List[JsonDict]
    bytecode: str
    networks: Mapping[str, Any] = field(default_factory=dict)
    source_path: Optional[str] = None


def _extract_bytecode(data: Mapping[str, Any]) -> Optional[str]:
    bc = data.get("bytecode")
    if isinstance(bc, Mapping):
        bc = bc.get("object")
    if isinstance(bc, str) and bc:
        return bc if bc.startswith("0x") else "0x" + bc
    evm = data.get("evm")
    if isinstance(evm, Mapping):
        obj = evm.get("bytecode", {}).get("object")
        if isinstance(obj, str) and obj:
            return obj if obj.startswith("0x") else "0x" + obj
    return None


def parse_artifact(data: Mapping[str, Any], *, name: Optional[str] = None, path: Optional[str] = None) -> ContractArtifact:
    """Build a ContractArtifact from an already-parsed artifact mapping."""
    abi = data.get("abi")
    if not isinstance(abi, list):
        raise ArtifactError("artifact has no ABI list", path=path)
    bytecode = _extract_bytecode(data)
    if bytecode is None or len(bytecode) <= 2:
        raise ArtifactError("artifact has no creation bytecode (abstract contract or interface?)", path=path)
    if "__" in bytecode:
        raise ArtifactError("bytecode has unresolved library placeholders", path=path)
    contract_name = str(data.get("contractName") or name or (Path(path).stem if path else "Contract"))
    networks = data.get("networks")
    return ContractArtifact(
        contract_name=contract_name,
        abi=[dict(x) for x in abi if isinstance(x, Mapping)],
        bytecode=bytecode,
        networks=dict(networks) if isinstance(networks, Mapping) else {},
        source_path=path,
    )


def load_artifact(path: str | Path) -> ContractArtifact:
    """Read and parse an artifact JSON file."""
    p = Path(path)
    if not p.is_file():
        raise ArtifactError("artifact not found", path=str(p))
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except ValueError as e:
        raise ArtifactError(f"artifact is not valid JSON: {e}", path=str(p)) from e
    if not isinstance(data, Mapping):
        raise ArtifactError("artifact root must be an object", path=str(p))
    return parse_artifact(data, name=p.stem, path=str(p))


def candidate_paths(name: str, dirs: Iterable[str | Path]) -> List[Path]:
    out: List[Path] = []
    for d in dirs:
        base = Path(d)
        out.append(base / f"{name}.json")
        out.append(base / f"{name}.sol" / f"{name}.json")
    return out


def find_artifact(name: str, dirs: Sequence[str | Path]) -> ContractArtifact:
    """Locate `<name>` under the given directories (Truffle, Foundry or plain layout)."""
    tried = candidate_paths(name, dirs)
    for p in tried:
        if p.is_file():
            return load_artifact(p)
    raise ArtifactError(
        f"no artifact for {name!r}; looked in: " + ", ".join(str(p) for p in tried)
    )


__all__ = [
    "ContractArtifact",
    "parse_artifact",
    "load_artifact",
    "candidate_paths",
    "find_artifact",
]
