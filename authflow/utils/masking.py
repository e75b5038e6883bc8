from __future__ import annotations


def mask_subject(subject_id: str, *, keep: int = 4) -> str:
    """
    Mask a subject id for log lines: keep the first `keep` characters.

    >>> mask_subject("3f2b9c1e-aaaa")
    '3f2b***'
    >>> mask_subject("bob")
    '***'
    """
    s = (subject_id or "").strip()
    if len(s) <= keep:
        return "***"
    return s[:keep] + "***"
