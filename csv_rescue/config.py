"""Named processing profiles.

``strict``  -- full strategy chain, 0.85 confidence, utf8 default, typed values
``lenient`` -- full strategy chain, 0.80 confidence, gbk default, lossy decoding
               accepted, values left as cleaned strings
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .models import AllowList, DecodeConfig, NormalizeConfig, ProcessingProfile


def _strict() -> ProcessingProfile:
    return ProcessingProfile(name="strict")


def _lenient() -> ProcessingProfile:
    return ProcessingProfile(
        name="lenient",
        decode=DecodeConfig(
            confidence_threshold=0.80,
            default_encoding="gbk",
            strict=False,
        ),
        normalize=NormalizeConfig(coerce_numbers=False, coerce_dates=False),
    )


_PROFILES = {
    "strict": _strict,
    "lenient": _lenient,
}

PROFILE_NAMES = tuple(_PROFILES)


def get_profile(
    name: str = "strict",
    *,
    allow_field: Optional[str] = None,
    allow_values: Optional[Iterable[str]] = None,
    overrides: Optional[Dict] = None,
) -> ProcessingProfile:
    """Build a fresh profile, optionally with an allow-list filter.

    ``overrides`` is a nested dict merged over the profile, e.g.
    ``{"decode": {"confidence_threshold": 0.9}}``.
    """
    try:
        profile = _PROFILES[name]()
    except KeyError:
        raise ValueError(f"unknown profile {name!r}; expected one of {', '.join(PROFILE_NAMES)}") from None

    if overrides:
        data = profile.model_dump()
        for section, values in overrides.items():
            if isinstance(values, dict) and isinstance(data.get(section), dict):
                data[section].update(values)
            else:
                data[section] = values
        profile = ProcessingProfile.model_validate(data)

    values = [v for v in (allow_values or ()) if v]
    if allow_field and values:
        profile.normalize.allow_list = AllowList(field=allow_field, values=values)
    elif allow_field or values:
        raise ValueError("an allow-list needs both a field and at least one value")
    return profile
