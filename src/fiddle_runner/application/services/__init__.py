from .result_collector import ResultCollector, elapsed_seconds, format_duration

__all__ = ["ResultCollector", "elapsed_seconds", "format_duration"]
