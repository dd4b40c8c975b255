"""
source_adapters/static_json.py

Concrete Strategy: StaticJsonAdapter
────────────────────────────────────
Returns JSON text supplied at design time, unmodified.
"""

from injection_errors import ConfigurationError

from .base import InjectionRequest, SourceAdapter, SourceKind


class StaticJsonAdapter(SourceAdapter):

    @property
    def kind(self) -> SourceKind:
        return SourceKind.STATIC_JSON

    def produce(self, request: InjectionRequest) -> str:
        if request.static_text is None:
            raise ConfigurationError(f"[{request.name}] no static JSON configured")
        return request.static_text
