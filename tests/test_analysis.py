import textwrap

import numpy as np
import pytest

from vermatrix.analysis import analyze_source, gamma_index, summarize_tree


def _signal(values, start=0.0, width=1.0):
    return {"start": start, "width": width, "data": np.asarray(values, dtype=float)}


def test_gamma_zero_for_identical_signals() -> None:
    signal = _signal([0.2, 0.6, 1.0, 0.6, 0.2])
    gamma = gamma_index(signal, signal, 1.0, 0.1)
    assert gamma.shape == (5,)
    np.testing.assert_allclose(gamma, 0.0, atol=1e-9)


def test_gamma_dose_difference_without_shift() -> None:
    reference = _signal([1.0, 1.0, 1.0])
    candidate = _signal([1.02, 1.02, 1.02])
    gamma = gamma_index(reference, candidate, 1.0, 0.1)
    np.testing.assert_allclose(gamma, 2.0, rtol=1e-6)


def test_gamma_distance_to_agreement_for_shifted_edge() -> None:
    reference = _signal([0.0, 0.0, 1.0, 1.0], width=1.0)
    candidate = _signal([0.0, 0.0, 1.0, 1.0], start=0.05, width=1.0)
    gamma = gamma_index(reference, candidate, 1.0, 0.1)
    assert np.all(gamma < 1.0)


def test_gamma_local_normalization_is_stricter_in_tails() -> None:
    reference = _signal([0.1, 1.0])
    candidate = _signal([0.105, 1.0])
    assert gamma_index(reference, candidate, 1.0, 0.01, True)[0] < 1.0
    assert gamma_index(reference, candidate, 1.0, 0.01, False)[0] > 1.0


def test_gamma_rejects_bad_tolerances() -> None:
    with pytest.raises(ValueError):
        gamma_index(_signal([1.0]), _signal([1.0]), 0.0, 0.1)


def test_analyze_source_reports_complexity_and_messages(tmp_path) -> None:
    source = tmp_path / "module.py"
    source.write_text(
        textwrap.dedent(
            """
            def simple():
                return 1


            def branchy(values):
                total = 0
                for value in values:
                    if value > 0 and value < 10:
                        total += value
                try:
                    total = 1 / total
                except:
                    pass
                return total
                print("never")


            def compare(value):
                return value is 1
            """
        ),
        encoding="utf-8",
    )
    findings = analyze_source(source)
    complexities = {f.message: f.complexity for f in findings if f.is_complexity_metric}
    assert complexities["The McCabe complexity of 'simple' is 1."] == 1
    assert complexities["The McCabe complexity of 'branchy' is 5."] == 5
    messages = [f.message for f in findings if not f.is_complexity_metric]
    assert any("bare 'except:'" in message for message in messages)
    assert any("unreachable statement" in message for message in messages)
    assert any("is" in message and "literal" in message for message in messages)


def test_syntax_error_is_a_single_finding(tmp_path) -> None:
    broken = tmp_path / "broken.py"
    broken.write_text("def oops(:\n", encoding="utf-8")
    findings = analyze_source(broken)
    assert len(findings) == 1
    assert "syntax error" in findings[0].message


def test_summarize_tree_skips_caches_and_hidden_dirs(tmp_path) -> None:
    (tmp_path / "app.py").write_text("def run():\n    return 1\n", encoding="utf-8")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "util.py").write_text("def helper(x):\n    return x if x else 0\n", encoding="utf-8")
    for hidden in ("__pycache__", ".venv"):
        (tmp_path / hidden).mkdir()
        (tmp_path / hidden / "skip.py").write_text("def ignored():\n    pass\n", encoding="utf-8")
    summary = summarize_tree(tmp_path)
    assert summary.files == 2
    assert summary.complexity == 3
    assert summary.messages == 0
