"""
Tri-state factor vectors.

Every factor holds ``True``, ``False`` or ``None``:
  - ``True``  - the signal fired on this day.
  - ``False`` - the signal was evaluated and did not fire.
  - ``None``  - unknown; the data needed to evaluate it is not available.

``None`` is never collapsed into ``False``. ``factor_count`` counts only
values that are exactly ``True``.

Ownership split
---------------
``FactorVector`` keeps the six externally-sourced factors in a separate,
frozen ``ExternalFactors`` group. The derivation step in
``features.factors`` receives an ``ExternalFactors`` (or uses the all-``None``
default) and copies it through verbatim; it has no field it could write a
computed value into. An enrichment collaborator replaces the group wholesale
with ``FactorVector.with_external()``, which returns a new vector.
"""

from __future__ import annotations

from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

from surge_scorer.taxonomy.factor_taxonomy import (
    ALL_FACTORS,
    DETERMINISTIC_FACTORS,
    EXTERNAL_FACTORS,
    Factor,
    parse_factor,
)


class ExternalFactors(BaseModel):
    """Factor slots owned by the enrichment collaborator.

    All default to ``None``. Frozen: the only way to change a value is to
    build a new instance and attach it with ``FactorVector.with_external()``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    market_up: Optional[bool] = None
    sector_up: Optional[bool] = None
    earnings_window: Optional[bool] = None
    news_positive: Optional[bool] = None
    short_covering: Optional[bool] = None
    macro_tailwind: Optional[bool] = None

    def is_empty(self) -> bool:
        """True when no external factor has been filled in."""
        return all(getattr(self, f.value) is None for f in EXTERNAL_FACTORS)


UNKNOWN_EXTERNAL = ExternalFactors()


class FactorVector(BaseModel):
    """The complete set of factor values for one trading day.

    Attributes:
        volume_spike: Volume above ``k`` × trailing average volume.
        break_ma50: Close above the 50-day SMA.
        break_ma200: Close above the 200-day SMA.
        rsi_over_60: RSI above 60.
        external: The six enrichment-owned factors.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    volume_spike: Optional[bool] = None
    break_ma50: Optional[bool] = None
    break_ma200: Optional[bool] = None
    rsi_over_60: Optional[bool] = None
    external: ExternalFactors = UNKNOWN_EXTERNAL

    # ── Accessors ──────────────────────────────────────────────────────────────

    def get(self, factor: Factor | str) -> Optional[bool]:
        """Return the tri-state value of ``factor``."""
        f = factor if isinstance(factor, Factor) else parse_factor(factor)
        if f in DETERMINISTIC_FACTORS:
            return getattr(self, f.value)
        return getattr(self.external, f.value)

    def as_dict(self) -> dict[str, Optional[bool]]:
        """All 10 factors in canonical order, keyed by name."""
        return {f.value: self.get(f) for f in ALL_FACTORS}

    def active_factors(self) -> list[Factor]:
        """Factors whose value is exactly ``True``, in canonical order."""
        return [f for f in ALL_FACTORS if self.get(f) is True]

    @property
    def factor_count(self) -> int:
        return len(self.active_factors())

    # ── Constructors ───────────────────────────────────────────────────────────

    def with_external(self, external: ExternalFactors) -> "FactorVector":
        """Return a copy of this vector with ``external`` attached."""
        return self.model_copy(update={"external": external})

    @classmethod
    def from_mapping(cls, values: Mapping[str, Optional[bool]]) -> "FactorVector":
        """Build a vector from a ``{factor_name: bool | None}`` mapping.

        Factors missing from ``values`` are ``None``. Used for hypothetical
        vectors (predictions) and for rebuilding stored rows.

        Raises:
            ValueError: On an unknown factor name or a non-boolean value.
        """
        deterministic: dict[str, Optional[bool]] = {}
        external: dict[str, Optional[bool]] = {}
        for name, value in values.items():
            factor = parse_factor(name)
            if value is not None and not isinstance(value, bool):
                raise ValueError(
                    f"Factor '{factor.value}' must be true, false or null, got {value!r}."
                )
            target = deterministic if factor in DETERMINISTIC_FACTORS else external
            target[factor.value] = value
        return cls(**deterministic, external=ExternalFactors(**external))
