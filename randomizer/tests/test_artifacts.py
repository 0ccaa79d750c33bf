import json
from pathlib import Path

import pytest

from randomizer.contracts.artifacts import candidate_paths, find_artifact, load_artifact, parse_artifact
from randomizer.errors import ArtifactError
from randomizer.tests.conftest import ARTIFACT

ABI = [{"type": "function", "name": "f", "inputs": [], "outputs": []}]


def _write(p: Path, data) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return p


def test_load_truffle_fixture():
    art = load_artifact(ARTIFACT)
    assert art.contract_name == "RandomizerTest"
    assert art.bytecode.startswith("0x6080")
    assert art.networks == {}
    assert art.source_path == str(ARTIFACT)
    names = {e.get("name") for e in art.abi}
    assert {"startGeneratingRandom", "ShowRandomResult", "__callback"} <= names


def test_foundry_shape_and_missing_prefix():
    art = parse_artifact({"abi": ABI, "bytecode": {"object": "6080"}}, name="Foo")
    assert art.contract_name == "Foo"
    assert art.bytecode == "0x6080"


def test_solc_standard_json_shape():
    art = parse_artifact({"abi": ABI, "evm": {"bytecode": {"object": "6001"}}}, name="Bar")
    assert art.bytecode == "0x6001"


@pytest.mark.parametrize(
    "data, needle",
    [
        ({"bytecode": "0x6080"}, "ABI"),
        ({"abi": ABI, "bytecode": "0x"}, "bytecode"),
        ({"abi": ABI}, "bytecode"),
        ({"abi": ABI, "bytecode": "0x6080__$Lib$__6080"}, "placeholders"),
    ],
)
def test_malformed_artifacts_raise(data, needle):
    with pytest.raises(ArtifactError) as ei:
        parse_artifact(data, name="X")
    assert needle in str(ei.value)


def test_load_rejects_missing_and_invalid_files(tmp_path: Path):
    with pytest.raises(ArtifactError):
        load_artifact(tmp_path / "nope.json")
    bad = _write(tmp_path / "Bad.json", "{not json")
    with pytest.raises(ArtifactError) as ei:
        load_artifact(bad)
    assert ei.value.path == str(bad)
    arr = _write(tmp_path / "Arr.json", [1, 2])
    with pytest.raises(ArtifactError):
        load_artifact(arr)


def test_find_artifact_search_order(tmp_path: Path):
    truffle = tmp_path / "build" / "contracts"
    foundry = tmp_path / "out"
    _write(foundry / "RandomizerTest.sol" / "RandomizerTest.json", {"abi": ABI, "bytecode": {"object": "0x01"}})
    art = find_artifact("RandomizerTest", [truffle, foundry])
    assert art.bytecode == "0x01"

    _write(truffle / "RandomizerTest.json", {"contractName": "RandomizerTest", "abi": ABI, "bytecode": "0x02"})
    art = find_artifact("RandomizerTest", [truffle, foundry])
    assert art.bytecode == "0x02"


def test_find_artifact_reports_where_it_looked(tmp_path: Path):
    dirs = [tmp_path / "a", tmp_path / "b"]
    with pytest.raises(ArtifactError) as ei:
        find_artifact("Missing", dirs)
    for p in candidate_paths("Missing", dirs):
        assert str(p) in str(ei.value)
