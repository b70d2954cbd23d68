import json
import os
import subprocess
import sys
from pathlib import Path

import pandas as pd
import pytest

from music_deconv import cli

SRC = str(Path(__file__).resolve().parents[1] / "src")


def test_cli_help():
    env = {**os.environ, "PYTHONPATH": SRC + os.pathsep + os.environ.get("PYTHONPATH", "")}
    out = subprocess.run([sys.executable, "-m", "music_deconv.cli", "-h"], capture_output=True, text=True, env=env)
    assert out.returncode == 0
    assert "usage" in out.stdout.lower()
    assert "--ct_cov" in out.stdout


def _write_inputs(tmp_path, counts, obs):
    counts_path = tmp_path / "counts.tsv"
    meta_path = tmp_path / "meta.tsv"
    counts.to_csv(counts_path, sep="\t", index_label="gene")
    obs.to_csv(meta_path, sep="\t", index_label="barcode")
    return str(counts_path), str(meta_path)


def test_cli_end_to_end(tmp_path, toy_reference):
    counts_path, meta_path = _write_inputs(tmp_path, toy_reference.to_dataframe(), toy_reference.obs)
    outdir = tmp_path / "run"
    cli.main([
        "--sc_counts", counts_path,
        "--sc_metadata", meta_path,
        "--clusters", "cell_type",
        "--samples", "subject",
        "--select_ct", "Y,X",
        "--ct_cov", "false",
        "--verbose", "no",
        "--outdir", str(outdir),
    ])
    design = pd.read_csv(outdir / "basis" / "design_matrix.tsv", sep="\t", index_col=0)
    assert list(design.columns) == ["Y", "X"]
    assert design.loc["g2", "Y"] == pytest.approx(5.0)
    summary = json.loads((outdir / "basis" / "basis_summary.json").read_text())
    assert summary["select_ct"] == ["Y", "X"]
    assert (outdir / "bulk" / "num_real.tsv").exists()


def test_cli_skip_bulk_and_bad_cell_size(tmp_path, toy_reference):
    counts_path, meta_path = _write_inputs(tmp_path, toy_reference.to_dataframe(), toy_reference.obs)
    sizes = tmp_path / "sizes.tsv"
    pd.DataFrame({"cell_type": ["X"], "size": [1.0]}).to_csv(sizes, sep="\t", index=False)
    with pytest.raises(SystemExit, match="ConfigurationError"):
        cli.main([
            "--sc_counts", counts_path, "--sc_metadata", meta_path,
            "--samples", "subject", "--cell_size", str(sizes),
            "--skip_bulk", "--outdir", str(tmp_path / "run"),
        ])


def test_cli_requires_reference():
    with pytest.raises(SystemExit):
        cli.main(["--outdir", "unused"])
