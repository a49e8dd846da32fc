"""Catalogue of available indicators and selection by id."""
import logging
from typing import Iterable, List, Optional

from indicators.base import Indicator
from indicators.momentum import CCI, MACD, MOMENTUM, ROC, RSI, STC, STOCHASTIC, WILLIAMS_R
from indicators.trend import AROON, DMI, EMA_CROSSOVER, SMA_CROSSOVER, SUPERTREND
from indicators.volatility import ATR, BOLLINGER
from indicators.volume import VOLUME, VWAP

logger = logging.getLogger("signalpulse.indicators")

# Display order
ALL_INDICATORS = (
    RSI,
    MACD,
    BOLLINGER,
    SMA_CROSSOVER,
    VOLUME,
    MOMENTUM,
    STOCHASTIC,
    ATR,
    DMI,
    STC,
    AROON,
    SUPERTREND,
    EMA_CROSSOVER,
    WILLIAMS_R,
    CCI,
    ROC,
    VWAP,
)

_BY_ID = {ind.id: ind for ind in ALL_INDICATORS}

DEFAULT_ENABLED = tuple(ind.id for ind in ALL_INDICATORS if ind.enabled_by_default)


def get_indicator(indicator_id: str) -> Optional[Indicator]:
    return _BY_ID.get(indicator_id)


def indicator_ids() -> List[str]:
    return [ind.id for ind in ALL_INDICATORS]


def select_indicators(ids: Optional[Iterable[str]] = None) -> List[Indicator]:
    """Resolve a preference list of ids to indicators, in catalogue order.

    ``None`` selects the default set. Unknown ids are skipped with a warning.
    """
    if ids is None:
        ids = DEFAULT_ENABLED
    wanted = set()
    for indicator_id in ids:
        if indicator_id in _BY_ID:
            wanted.add(indicator_id)
        else:
            logger.warning(f"Unknown indicator id '{indicator_id}' ignored")
    return [ind for ind in ALL_INDICATORS if ind.id in wanted]
