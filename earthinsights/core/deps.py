# earthinsights/core/deps.py
from functools import lru_cache

from .config import Settings, settings
from ..services.adapters import build_adapters
from ..services.briefing import BriefingDispatcher
from ..services.comparator import ImageComparator
from ..services.interpreter import QueryInterpreter
from ..services.llm import LanguageModel
from ..services.orchestrator import Orchestrator
from ..services.synthesizer import Synthesizer
from ..services.vision import VisionService


def get_settings() -> Settings:
    return settings


@lru_cache
def get_llm() -> LanguageModel:
    return LanguageModel(settings)


def get_interpreter() -> QueryInterpreter:
    return QueryInterpreter(get_llm())


def get_synthesizer() -> Synthesizer:
    return Synthesizer(get_llm())


def get_vision() -> VisionService:
    return VisionService(settings, get_llm())


def get_comparator() -> ImageComparator:
    return ImageComparator(get_llm())


def get_dispatcher() -> BriefingDispatcher:
    return BriefingDispatcher(settings)


def get_orchestrator() -> Orchestrator:
    """Single-day weather, used by search and the per-country context routes."""
    return Orchestrator(build_adapters(settings, weather_mode="day"), settings)


def get_range_orchestrator() -> Orchestrator:
    return Orchestrator(build_adapters(settings, weather_mode="range"), settings)
