from signals.aggregator import classify_score, combine, calculate_combined_signal

__all__ = ["classify_score", "combine", "calculate_combined_signal"]
