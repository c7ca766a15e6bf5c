"""
Decides which observation form fields a suggestion should fill in
"""
from inspection_ai.models.domain import AISettings, AnalysisSuggestion, AutofillFields


def build_autofill(suggestion: AnalysisSuggestion, settings: AISettings) -> AutofillFields:
    """
    Filter a suggestion through the caller's auto-populate switches

    confidence_threshold is not applied.
    """
    if not suggestion.success or not settings.auto_populate_enabled:
        return AutofillFields()

    return AutofillFields(
        distance=(
            suggestion.distance
            if suggestion.distance is not None and settings.distance_ocr_enabled
            else None
        ),
        observation_code=(
            suggestion.observation_code
            if suggestion.observation_code and settings.object_detection_enabled
            else None
        ),
    )
