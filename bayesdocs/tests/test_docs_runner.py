"""Tests for tutorial document execution and rendering.

Tests cover:
  - Fenced block extraction (tildes, nesting, skip tags, unterminated fences)
  - Shared-namespace execution, captured stdout and wrapped failures
  - Rendering outputs inline after each block
  - (slow) Executing the shipped tutorials end to end with a short sampler
"""

import ast
import pathlib
import sys
import textwrap

import pytest
import pymc as pm

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent.parent))

from bayesdocs.docs_runner import (
    DocExecutionError,
    execute_document,
    extract_blocks,
    render_document,
)

DOCS_DIR = pathlib.Path(__file__).resolve().parent.parent.parent / "docs"

SAMPLE = textwrap.dedent("""\
    # Title

    ```python
    x = 1
    print(x + 1)
    ```

    Some prose.

    ```text
    not code
    ```

    ```python skip
    raise RuntimeError("never runs")
    ```

    ```python
    print(x * 10)
    ```
    """)


@pytest.fixture
def sample_doc(tmp_path):
    p = tmp_path / "sample.md"
    p.write_text(SAMPLE)
    return p


class TestExtractBlocks:

    def test_finds_python_blocks_in_order(self):
        blocks = extract_blocks(SAMPLE)
        assert [b.index for b in blocks] == [0, 1, 2]
        assert blocks[0].source == "x = 1\nprint(x + 1)\n"
        assert blocks[0].lineno == 3
        assert blocks[0].end_lineno == 6
        assert blocks[1].skip is True
        assert blocks[2].skip is False

    def test_ignores_python_fence_nested_in_longer_fence(self):
        text = "````markdown\n```python\nprint(1)\n```\n````\n"
        assert extract_blocks(text) == []

    def test_tilde_fences(self):
        blocks = extract_blocks("~~~python\ny = 2\n~~~\n")
        assert len(blocks) == 1
        assert blocks[0].source == "y = 2\n"

    def test_unterminated_fence_runs_to_end(self):
        blocks = extract_blocks("```python\na = 1\nb = 2")
        assert len(blocks) == 1
        assert blocks[0].source == "a = 1\nb = 2\n"

    def test_no_blocks(self):
        assert extract_blocks("just prose\n") == []


class TestExecuteDocument:

    def test_shared_namespace_and_captured_output(self, sample_doc):
        result = execute_document(sample_doc)
        assert result.n_executed == 2
        assert [o.stdout for o in result.outputs] == ["2\n", "10\n"]
        assert result.namespace["x"] == 1

    def test_failure_names_block_and_chains_cause(self, tmp_path):
        doc = tmp_path / "broken.md"
        doc.write_text("```python\nok = True\n```\n\n```python\n1 / 0\n```\n")
        with pytest.raises(DocExecutionError) as exc_info:
            execute_document(doc)
        err = exc_info.value
        assert err.block.index == 1
        assert err.block.lineno == 5
        assert isinstance(err.__cause__, ZeroDivisionError)
        assert "broken.md" in str(err)

    def test_syntax_error_is_wrapped(self, tmp_path):
        doc = tmp_path / "syntax.md"
        doc.write_text("```python\ndef (:\n```\n")
        with pytest.raises(DocExecutionError) as exc_info:
            execute_document(doc)
        assert isinstance(exc_info.value.__cause__, SyntaxError)


class TestRenderDocument:

    def test_outputs_inlined_after_blocks(self, sample_doc, tmp_path):
        out = render_document(sample_doc, tmp_path / "out" / "rendered.md")
        text = out.read_text()
        assert "```text\n2\n```" in text
        assert "```text\n10\n```" in text
        assert "never runs" in text
        assert text.index("print(x + 1)") < text.index("```text\n2\n```")

    def test_default_output_path(self, sample_doc):
        out = render_document(sample_doc)
        assert out == sample_doc.with_name("sample.rendered.md")
        assert out.exists()


@pytest.mark.parametrize("name", ["coin_flip.md", "linear_regression.md"])
def test_tutorial_blocks_are_valid_python(name):
    blocks = extract_blocks((DOCS_DIR / name).read_text())
    assert len(blocks) >= 4
    for block in blocks:
        ast.parse(block.source)


# ============================================================
# Shipped tutorials, executed (slow)
# ============================================================

@pytest.fixture
def short_sampler(monkeypatch):
    """Cap every ``pm.sample`` call the tutorials make to a short single chain."""
    real_sample = pm.sample

    def sample(*args, **kwargs):
        for key in ("draws", "tune", "chains", "cores"):
            kwargs.pop(key, None)
        return real_sample(draws=200, tune=200, chains=1, cores=1, **kwargs)

    monkeypatch.setattr(pm, "sample", sample)


def _stdout(result):
    return "".join(o.stdout for o in result.outputs)


@pytest.mark.slow
class TestShippedTutorials:

    def test_coin_flip_tutorial_runs(self, tmp_path, monkeypatch, short_sampler):
        monkeypatch.chdir(tmp_path)
        doc = DOCS_DIR / "coin_flip.md"
        result = execute_document(doc)

        blocks = extract_blocks(doc.read_text())
        assert result.n_executed == sum(not b.skip for b in blocks)
        out = _stdout(result)
        assert "heads out of 200" in out
        assert "BetaPosterior(alpha=4.0, beta=2.0, n_heads=3, n_tails=1)" in out
        assert "MCMC mean = " in out

        ns = result.namespace
        assert abs(ns["mcmc_mean"] - ns["posterior"].mean) < 0.03
        assert (tmp_path / "results" / "belief_trajectory.png").exists()
        assert (tmp_path / "results" / "beta_densities.png").exists()

    def test_linear_regression_tutorial_runs(self, tmp_path, monkeypatch, short_sampler):
        monkeypatch.chdir(tmp_path)
        doc = DOCS_DIR / "linear_regression.md"
        result = execute_document(doc)

        blocks = extract_blocks(doc.read_text())
        assert result.n_executed == sum(not b.skip for b in blocks)
        out = _stdout(result)
        assert "(331, 10) (111, 10)" in out
        assert "RMSE" in out
        assert "Predictive interval coverage" in out

        comparison = result.namespace["compare"](
            result.namespace["data"], result.namespace["ols"],
            result.namespace["bayes"], level=0.94,
        )
        assert comparison.interval_coverage > 0.85
        assert comparison.bayes_rmse == pytest.approx(comparison.ols_rmse, rel=0.05)
        assert (tmp_path / "results" / "coefficients.png").exists()
        assert (tmp_path / "results" / "predictions.png").exists()
