from Levenshtein import ratio as lev_ratio
from difflib import SequenceMatcher
from typing import Dict, Any, List, Optional
from config import load_config

QUALITY_PERFECT = 5
QUALITY_GOOD = 4
QUALITY_CLOSE = 2
QUALITY_FAIL = 0


def grade_recall(expected: str, typed: str, config: Optional[Dict[str, Any]] = None) -> int:
    """Grade a typed recall against the expected text as an SM-2 quality (0-5)."""
    if not config:
        config = load_config()
    grading_config = config.get('grading', {})
    perfect_th = grading_config.get('perfect_threshold', 0.98)
    good_th = grading_config.get('good_threshold', 0.85)
    close_th = grading_config.get('close_threshold', 0.6)

    if not typed or not typed.strip():
        return QUALITY_FAIL

    lev = lev_ratio(typed.strip().lower(), (expected or "").strip().lower())

    if lev >= perfect_th:
        return QUALITY_PERFECT
    elif lev >= good_th:
        return QUALITY_GOOD
    elif lev >= close_th:
        return QUALITY_CLOSE
    return QUALITY_FAIL


def token_diff(expected_text: str, actual_text: str) -> Dict[str, List[Dict[str, str]]]:
    """Compute a whitespace-token diff so a client can highlight recall mistakes."""
    expected_tokens = expected_text.split() if expected_text else []
    actual_tokens = actual_text.split() if actual_text else []
    matcher = SequenceMatcher(None, expected_tokens, actual_tokens)
    expected: List[Dict[str, str]] = []
    actual: List[Dict[str, str]] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for token in expected_tokens[i1:i2]:
                expected.append({"token": token, "status": "match"})
            for token in actual_tokens[j1:j2]:
                actual.append({"token": token, "status": "match"})
        elif tag == "delete":
            for token in expected_tokens[i1:i2]:
                expected.append({"token": token, "status": "missing"})
        elif tag == "insert":
            for token in actual_tokens[j1:j2]:
                actual.append({"token": token, "status": "extra"})
        elif tag == "replace":
            for token in expected_tokens[i1:i2]:
                expected.append({"token": token, "status": "substitution"})
            for token in actual_tokens[j1:j2]:
                actual.append({"token": token, "status": "substitution"})
    return {"expected": expected, "actual": actual}
