"""Human-readable booking reference numbers."""

import random
from datetime import datetime
from typing import Optional

PROTOCOL_SUFFIX_RANGE = 1000


def generate_protocol(
    prefix: str,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Build a reference such as ``AGD202503151030042``.

    Prefix, then the creation minute as ``YYYYMMDDHHMM``, then three random
    digits to separate bookings made in the same minute.
    """
    now = now or datetime.now()
    suffix = (rng or random).randrange(PROTOCOL_SUFFIX_RANGE)
    return f"{prefix}{now.strftime('%Y%m%d%H%M')}{suffix:03d}"
