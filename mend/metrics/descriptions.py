"""Human-readable descriptions for metric scores."""

from __future__ import annotations

from mend.models.enums import MetricKind


def describe_metric(kind: MetricKind, current: float, delta: float, *, is_stable: bool) -> str:
    if kind is MetricKind.HEART_RATE:
        return describe_heart_rate(current, delta, is_stable=is_stable)
    if kind is MetricKind.HRV:
        return describe_hrv(current, delta, is_stable=is_stable)
    if kind is MetricKind.SLEEP_DURATION:
        return describe_sleep_duration(current, delta, is_stable=is_stable)
    return describe_sleep_quality(current, delta, is_stable=is_stable)


def describe_heart_rate(current: float, delta: float, *, is_stable: bool) -> str:
    average = current - delta
    base = f"Resting heart rate of {current:.0f} BPM, measured during periods of inactivity."

    if is_stable:
        return (
            f"{base} Your RHR is stable compared to your weekly average of {average:.0f} BPM, "
            "indicating a consistent balance between cardiovascular load and recovery."
        )

    if delta < 0:
        return (
            f"{base} Your RHR is {abs(delta):.0f} BPM lower than your 7-day average of {average:.0f} BPM, "
            "suggesting improved cardiovascular efficiency and recovery."
        )
    return (
        f"{base} Your RHR is {abs(delta):.0f} BPM higher than your 7-day average of {average:.0f} BPM, "
        "which could indicate increased fatigue, stress, or insufficient recovery."
    )


def describe_hrv(current: float, delta: float, *, is_stable: bool) -> str:
    average = current - delta
    base = (
        f"Heart Rate Variability of {current:.0f} ms, representing the average variation "
        "in time intervals between consecutive heartbeats."
    )

    if is_stable:
        return (
            f"{base} Your HRV is stable compared to your weekly average of {average:.0f} ms, "
            "indicating consistent levels of fatigue and recovery."
        )

    percent_change = abs(delta) / average * 100 if average > 0 else 0.0

    if delta > 0:
        qualifier = "significantly " if percent_change > 15 else ""
        return (
            f"{base} Your HRV is {abs(delta):.0f} ms higher than your 7-day average of {average:.0f} ms, "
            f"suggesting {qualifier}better recovery, reduced stress, and improved readiness."
        )

    severity = "significantly " if percent_change > 30 else ""
    return (
        f"{base} Your HRV is {abs(delta):.0f} ms lower than your 7-day average of {average:.0f} ms, "
        f"which could indicate {severity}increased stress, fatigue, or accumulated training load "
        "requiring additional recovery."
    )


def describe_sleep_duration(current: float, delta: float, *, is_stable: bool) -> str:
    average = current - delta
    base = (
        f"Sleep duration of {current:.1f} hours. Adequate sleep (7-9 hours) is essential for "
        "physical recovery, cognitive function, and overall health."
    )

    if is_stable:
        return f"{base} Your sleep duration is stable and consistent with your weekly average of {average:.1f} hours."

    if delta > 0:
        if current <= 9.0:
            return (
                f"{base} You slept {abs(delta):.1f} hours more than your 7-day average of {average:.1f} hours, "
                "which is beneficial for recovery and cognitive function."
            )
        return (
            f"{base} You slept {abs(delta):.1f} hours more than your 7-day average of {average:.1f} hours. "
            "While sleep is important, very long sleep periods (>9 hours) may sometimes indicate "
            "fatigue or recovery needs."
        )

    if current < 7.0:
        return (
            f"{base} You slept {abs(delta):.1f} hours less than your 7-day average of {average:.1f} hours, "
            "which may impact your cognitive function and physical recovery."
        )
    return (
        f"{base} You slept {abs(delta):.1f} hours less than your 7-day average of {average:.1f} hours, "
        "but still within the recommended range."
    )


def describe_sleep_quality(current: float, delta: float, *, is_stable: bool) -> str:
    average = current - delta
    base = (
        f"Sleep quality score of {current:.0f}/100, calculated from sleep continuity (10%), "
        "deep/REM sleep percentage (30%), and total sleep duration (60%)."
    )

    if is_stable:
        return f"{base} Your sleep quality is stable compared to your 7-day average of {average:.0f}/100."

    if delta > 0:
        return (
            f"{base} Your score is {abs(delta):.0f} points higher than your 7-day average of {average:.0f}/100, "
            "indicating improved sleep architecture with better continuity and/or more optimal deep sleep cycles."
        )
    return (
        f"{base} Your score is {abs(delta):.0f} points lower than your 7-day average of {average:.0f}/100, "
        "suggesting possible disruptions in sleep cycles or reduced deep sleep phases."
    )
