"""Tests for the end-to-end comparison run with an in-memory driver."""

import pytest

from cargodrift.engine import run_comparison
from cargodrift.errors import IoFailure, UpdateFailed
from cargodrift.structures import DriftOptions, FeatureSelection
from conftest import FakeResolutionDriver, make_graph


def _snapshot(directory):
    return {p.relative_to(directory): p.read_bytes() for p in sorted(directory.rglob("*")) if p.is_file()}


def test_three_way_comparison(scenario_a, single_crate):
    options = DriftOptions(manifest_path=single_crate.manifest_path)

    records = run_comparison(options, scenario_a)

    assert [(r.name, r.current, r.compatible, r.latest) for r in records] == [
        ("foo", "1.0.0", "1.2.0", "2.0.0")
    ]
    assert [branch for branch, _path, _features in scenario_a.resolved] == [
        "current",
        "compatible",
        "latest",
    ]


def test_user_project_untouched(scenario_a, single_crate):
    before = _snapshot(single_crate.root)
    run_comparison(DriftOptions(manifest_path=single_crate.manifest_path), scenario_a)
    assert _snapshot(single_crate.root) == before


def test_scratch_directories_removed(scenario_a, single_crate):
    run_comparison(DriftOptions(manifest_path=single_crate.manifest_path), scenario_a)
    assert len(scenario_a.scratch_dirs) == 3
    assert len(set(scenario_a.scratch_dirs)) == 3
    assert all(not path.exists() for path in scenario_a.scratch_dirs)
    assert all(single_crate.root not in path.parents for path in scenario_a.scratch_dirs)


def test_only_refreshed_branches_are_updated(scenario_a, single_crate):
    run_comparison(DriftOptions(manifest_path=single_crate.manifest_path), scenario_a)
    resolved = {branch: path for branch, path, _features in scenario_a.resolved}
    assert resolved["current"] not in scenario_a.refreshed
    assert resolved["compatible"] in scenario_a.refreshed
    assert resolved["latest"] in scenario_a.refreshed


def test_features_forwarded(scenario_a, single_crate):
    features = FeatureSelection(features=("serde",))
    run_comparison(
        DriftOptions(manifest_path=single_crate.manifest_path, features=features), scenario_a
    )
    assert {f for _branch, _path, f in scenario_a.resolved} == {features}


def test_up_to_date(up_to_date, single_crate):
    assert run_comparison(DriftOptions(manifest_path=single_crate.manifest_path), up_to_date) == []


def test_manifest_found_from_cwd(scenario_a, single_crate):
    nested = single_crate.root / "src"
    nested.mkdir()
    records = run_comparison(DriftOptions(), scenario_a, cwd=nested)
    assert len(records) == 1


def test_missing_manifest_path(scenario_a, tmp_path):
    with pytest.raises(IoFailure, match="Manifest not found"):
        run_comparison(DriftOptions(manifest_path=tmp_path / "nope" / "Cargo.toml"), scenario_a)


@pytest.mark.parametrize("branch", ["compatible", "latest"])
def test_update_failure_is_fatal_and_cleans_up(single_crate, branch):
    graph = make_graph({"app 0.1.0": []}, root="app 0.1.0")
    driver = FakeResolutionDriver(single_crate, graph, graph, graph, fail_refresh=branch)
    before = _snapshot(single_crate.root)

    with pytest.raises(UpdateFailed):
        run_comparison(DriftOptions(manifest_path=single_crate.manifest_path), driver)

    assert all(not path.exists() for path in driver.scratch_dirs)
    assert _snapshot(single_crate.root) == before


def test_depth_and_packages_applied(single_crate):
    current = make_graph(
        {"app 0.1.0": ["foo 1.0.0", "qux 1.0.0"], "foo 1.0.0": ["bar 1.0.0"], "bar 1.0.0": [], "qux 1.0.0": []},
        root="app 0.1.0",
    )
    latest = make_graph(
        {"app 0.1.0": ["foo 2.0.0", "qux 2.0.0"], "foo 2.0.0": ["bar 2.0.0"], "bar 2.0.0": [], "qux 2.0.0": []},
        root="app 0.1.0",
    )
    driver = FakeResolutionDriver(single_crate, current, current, latest)
    options = DriftOptions(manifest_path=single_crate.manifest_path, depth=1, packages=("foo", "bar"))

    records = run_comparison(options, driver)

    assert [r.name for r in records] == ["foo"]
