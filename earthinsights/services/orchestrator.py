# earthinsights/services/orchestrator.py
import asyncio
import logging
from datetime import timedelta
from typing import Iterable, List, Mapping, Optional

from ..core.config import Settings, settings
from ..core.errors import ValidationError
from ..schemas.common import DATA_TYPES, GeoTarget, SourceFailure, SourceResult, Timeframe
from ..utils.time import Deadline, today
from .adapters import SourceAdapter

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


def normalize_timeframe(tf: Optional[Timeframe], strict: bool = False) -> Timeframe:
    """
    Fill missing bounds and fix inverted ranges before dispatch. Inverted
    ranges are swapped, or rejected when `strict`.
    """
    tf = tf or Timeframe()
    start, end = tf.start, tf.end
    if start is None and end is None:
        end = today()
        start = end - timedelta(days=DEFAULT_WINDOW_DAYS)
    elif start is None:
        start = end
    elif end is None:
        end = start
    if start > end:
        if strict:
            raise ValidationError("Start date must be before end date", title="Invalid date range")
        logger.warning("Inverted timeframe %s..%s, swapping", start, end)
        start, end = end, start
    return tf.model_copy(update={"start": start, "end": end})


def ordered_types(data_types: Iterable[str]) -> List[str]:
    wanted = set(data_types)
    unknown = wanted - set(DATA_TYPES)
    if unknown:
        raise ValidationError(f"Unsupported data types: {', '.join(sorted(unknown))}")
    return [t for t in DATA_TYPES if t in wanted]


class Orchestrator:
    """
    Fan out one adapter call per (target, data type) pair and settle all of
    them. The output has exactly one SourceResult per pair, target-major.
    """

    def __init__(self, adapters: Mapping[str, SourceAdapter], cfg: Settings = settings):
        self.adapters = adapters
        self.cfg = cfg

    async def _settle(self, data_type: str, target: GeoTarget, timeframe: Timeframe,
                      deadline: Optional[Deadline]) -> SourceResult:
        adapter = self.adapters.get(data_type)
        if adapter is None:
            return SourceFailure(source=data_type, target=target.name, error=f"No adapter for {data_type}")
        try:
            call = adapter.fetch(target, timeframe, deadline)
            if deadline is None:
                return await call
            return await asyncio.wait_for(call, deadline.remaining() + self.cfg.deadline_grace)
        except asyncio.TimeoutError:
            logger.warning("[%s] %s exceeded the request budget", data_type, target.name)
            return SourceFailure(source=data_type, target=target.name, error=f"{data_type} request timed out")
        except Exception as e:
            logger.exception("[%s] adapter escaped with an error for %s", data_type, target.name)
            return SourceFailure(source=data_type, target=target.name, error=str(e))

    async def gather(self, targets: List[GeoTarget], data_types: Iterable[str], timeframe: Optional[Timeframe],
                     deadline: Optional[Deadline] = None, strict: bool = False) -> List[SourceResult]:
        tf = normalize_timeframe(timeframe, strict=strict)
        capped = targets[:self.cfg.max_targets]
        if len(capped) < len(targets):
            logger.info("Capping %d targets to %d", len(targets), len(capped))
        types = ordered_types(data_types)
        logger.info("Dispatching %d calls: %s x %s | %s..%s",
                    len(capped) * len(types), [t.name for t in capped], types, tf.start, tf.end)
        tasks = [self._settle(dt, target, tf, deadline) for target in capped for dt in types]
        return list(await asyncio.gather(*tasks))
