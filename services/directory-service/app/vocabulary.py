"""Fixed vocabularies for freelancer profiles and the pure checks over them."""

FREELANCER_TYPES = ("makeup-artist", "photographer", "videographer")

RATE_UNITS = ("hour", "session")

SOCIAL_MEDIA_PLATFORMS = ("facebook", "instagram", "tiktok")

SPECIALIZATIONS = {
    "makeup-artist": ("bridal", "natural", "glam", "airbrush", "traditional", "editorial"),
    "photographer": ("pre-wedding", "actual-day", "portrait", "candid", "studio", "destination"),
    "videographer": ("highlights", "cinematic", "documentary", "same-day-edit", "drone", "livestream"),
}

ALL_SPECIALIZATIONS = frozenset(s for group in SPECIALIZATIONS.values() for s in group)

MIN_SPECIALIZATIONS = 1
MAX_SPECIALIZATIONS = 6

MIN_PORTFOLIOS = 1
MAX_PORTFOLIOS = 3


def is_valid_type(freelancer_type) -> bool:
    return freelancer_type in FREELANCER_TYPES


def is_valid_rate_unit(rate_unit) -> bool:
    return rate_unit in RATE_UNITS


def is_valid_specializations(specialized) -> bool:
    """
    Specializations are checked against the whole vocabulary rather than the
    freelancer's own type: a photographer may also list "cinematic".
    """
    if not isinstance(specialized, (list, tuple, set)):
        return False
    if not MIN_SPECIALIZATIONS <= len(specialized) <= MAX_SPECIALIZATIONS:
        return False
    if len(set(specialized)) != len(specialized):
        return False
    return all(s in ALL_SPECIALIZATIONS for s in specialized)
