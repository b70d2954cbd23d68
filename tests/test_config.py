import os
from argparse import Namespace

import pytest

from music_deconv.config import USER_DEFAULTS, resolve_paths
from music_deconv.utils import split_list_arg, str_to_bool


def test_defaults_cover_cli_keys():
    for key in ("ref_h5ad", "sc_counts", "sc_metadata", "clusters", "samples",
                "select_ct", "markers", "cell_size", "non_zero", "ct_cov", "verbose", "outdir"):
        assert key in USER_DEFAULTS


def test_resolve_paths_namespace_and_dict(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    ns = Namespace(ref_h5ad="ref.h5ad", sc_counts="", markers=None, outdir="~/out")
    p = resolve_paths(ns)
    assert p["ref_h5ad"] == os.path.join(os.path.realpath(str(tmp_path)), "ref.h5ad")
    assert p["sc_counts"] is None
    assert p["markers"] is None
    assert p["outdir"] == os.path.join(os.path.expanduser("~"), "out")
    assert resolve_paths({"cell_size": "  "})["cell_size"] is None


def test_resolve_paths_rejects_other_types():
    with pytest.raises(TypeError):
        resolve_paths(["ref.h5ad"])


@pytest.mark.parametrize("value, expected", [
    ("true", True), ("Yes", True), ("1", True), (True, True),
    ("false", False), ("off", False), ("", False), (False, False),
])
def test_str_to_bool(value, expected):
    assert str_to_bool(value) is expected


def test_str_to_bool_rejects_garbage():
    with pytest.raises(ValueError):
        str_to_bool("maybe")


def test_split_list_arg():
    assert split_list_arg(None) is None
    assert split_list_arg("") is None
    assert split_list_arg([]) is None
    assert split_list_arg("T, B") == ["T", "B"]
    assert split_list_arg(["T", "B,M"]) == ["T", "B", "M"]
