"""
Consistency checks for scaffold options.

Checks run in a fixed order and stop at the first failure, so a record
with several problems always reports the same one.
"""

from .errors import ValidationError
from .reference import resolve_image_reference
from .types import Autoscaler, ImageReference, ScaffoldOptions


_SUPPORTED_AUTOSCALERS = (Autoscaler.HPA.value, Autoscaler.KEDA.value)


def _check_percentage(kind: str, value: int) -> None:
    if value < 1 or value > 100:
        raise ValidationError(
            f"target {kind} utilization percentage ({value}) must be between 1 and 100"
        )


def validate_autoscaling(options: ScaffoldOptions) -> None:
    """
    Validate the autoscaling fields of an options record.

    Only called once the autoscaler is known to be hpa or keda.

    Raises:
        ValidationError: On the first violated constraint
    """
    if options.max_replicas < 0:
        raise ValidationError(
            f"the maximum replica count ({options.max_replicas}) "
            "must be equal to or greater than 0"
        )

    if options.replicas > options.max_replicas:
        raise ValidationError(
            f"the minimum replica count ({options.replicas}) must be less than "
            f"or equal to the maximum replica count ({options.max_replicas})"
        )

    if not options.cpu_limit:
        raise ValidationError("cpu limits must be set when autoscaling is enabled")

    if not options.memory_limit:
        raise ValidationError("memory limits must be set when autoscaling is enabled")

    _check_percentage("cpu", options.target_cpu_utilization_percentage)
    _check_percentage("memory", options.target_memory_utilization_percentage)


def validate_options(options: ScaffoldOptions) -> ImageReference:
    """
    Validate scaffold options.

    Args:
        options: Candidate options

    Returns:
        The resolved image reference

    Raises:
        InvalidReferenceError: If the image reference does not parse
        ValidationError: On the first violated constraint
    """
    reference = resolve_image_reference(options.image)

    # Zero is accepted despite the message wording.
    if options.replicas < 0:
        raise ValidationError(
            f"the minimum replica count ({options.replicas}) must be greater than 0"
        )

    if not options.autoscaling_enabled:
        return reference

    if options.autoscaler not in _SUPPORTED_AUTOSCALERS:
        raise ValidationError(
            f"invalid autoscaler type '{options.autoscaler}'; "
            "the autoscaler type must be either 'hpa' or 'keda'"
        )

    validate_autoscaling(options)
    return reference
