"""Cognitive profile analytics over a performance summary.

Two families of indices, each bounded to [0, 1]:

- Cognitive Diagnostic Assessment (CDA): knowledge mastery per category,
  adaptability, consistency, recovery, error persistence.
- Executive function: processing speed, impulsivity control, analytical
  thinking, endurance, self-regulation.

All functions are pure and accept the plain-dict summary produced by
neuroquiz.performance, including one that went through a JSON round trip.
"""

TATSUOKA_REFERENCE = {
    "title": "Cognitive Assessment: An Introduction to the Rule Space Method",
    "author": "Kikumi K. Tatsuoka",
    "year": 2009,
    "publisher": "Taylor & Francis / Routledge",
    "summary": (
        "This foundational work introduces the Rule Space Method (RSM), a cognitive diagnostic "
        "technique that transforms item response patterns into measurable attribute mastery "
        "probabilities. RSM helps interpret test results beyond aggregate scores by identifying "
        "underlying knowledge strengths and weaknesses, enabling customized assessment feedback. "
        "It has been applied in large-scale assessments such as the PSAT and other educational "
        "diagnostics."
    ),
    "apa": "Tatsuoka, K. K. (2009). Cognitive assessment: An introduction to the Rule Space Method. Routledge.",
}

INSUFFICIENT_DATA_MESSAGE = "Insufficient data to generate cognitive summary."

RECENT_WINDOW = 5


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _time(entry: dict) -> float:
    return entry.get("time_taken_ms") or 0


def compute_knowledge_mastery(history: list, category_performance: dict) -> dict:
    """Blend overall and recent accuracy per category.

    mastery = 0.6 * overall accuracy + 0.4 * accuracy over the last five
    attempts in the category. Categories with no attempts are omitted.
    """
    if not history:
        return {}
    mastery = {}
    for category, data in (category_performance or {}).items():
        if data.get("total", 0) <= 0:
            continue
        accuracy = data.get("correct", 0) / data["total"]
        attempts = [h for h in history if h.get("category") == category]
        if attempts:
            recent = attempts[-RECENT_WINDOW:]
            recent_accuracy = sum(1 for h in recent if h.get("is_correct")) / len(recent)
            mastery[category] = _clamp01(accuracy * 0.6 + recent_accuracy * 0.4)
        else:
            mastery[category] = _clamp01(accuracy)
    return mastery


def compute_adaptability(history: list) -> float:
    """Share of difficulty changes that moved in the expected direction."""
    if not history or len(history) < 2:
        return 0.0
    aligned = 0
    changes = 0
    for prev, curr in zip(history, history[1:]):
        if prev.get("difficulty") == curr.get("difficulty"):
            continue
        changes += 1
        if curr.get("is_correct") and curr["difficulty"] > prev["difficulty"]:
            aligned += 1
        elif not curr.get("is_correct") and curr["difficulty"] < prev["difficulty"]:
            aligned += 1
    return aligned / changes if changes else 0.0


def compute_recovery(drop_count: int, promotion_count: int) -> float:
    if drop_count == 0:
        return 1.0 if promotion_count > 0 else 0.0
    return _clamp01(promotion_count / drop_count)


def compute_consistency(history: list) -> float:
    """1 minus the observed variance of the outcome sequence over its maximum."""
    if not history or len(history) < 3:
        return 0.0
    outcomes = [1 if h.get("is_correct") else 0 for h in history]
    mean = sum(outcomes) / len(outcomes)
    if mean in (0, 1):
        return 0.0
    variance = sum((x - mean) ** 2 for x in outcomes) / len(outcomes)
    max_variance = mean * (1 - mean)
    return 1 - variance / max_variance if max_variance > 0 else 0.0


def compute_error_persistence(history: list) -> float:
    """Share of wrong answers (after the first entry) that followed another wrong answer."""
    if not history or len(history) < 2:
        return 0.0
    repeated = 0
    errors = 0
    for prev, curr in zip(history, history[1:]):
        if not curr.get("is_correct"):
            errors += 1
            if not prev.get("is_correct"):
                repeated += 1
    return repeated / errors if errors else 0.0


def compute_processing_speed(history: list) -> float:
    if not history:
        return 0.0
    times = [t for t in (_time(h) for h in history) if t > 0]
    if not times:
        return 0.0
    average = sum(times) / len(times)
    fastest, slowest = min(times), max(times)
    if fastest == slowest:
        return 1.0
    return _clamp01(1 - (average - fastest) / (slowest - fastest))


def compute_impulsivity(history: list) -> float:
    """Share of fast answers (under half the mean time) that were wrong."""
    if not history:
        return 0.0
    threshold = sum(_time(h) for h in history) / len(history) * 0.5
    fast = [h for h in history if _time(h) < threshold]
    if not fast:
        return 0.0
    return sum(1 for h in fast if not h.get("is_correct")) / len(fast)


def compute_analytical_thinking(history: list) -> float:
    """Share of slow answers (over 1.5x the mean time) that were correct."""
    if not history:
        return 0.0
    threshold = sum(_time(h) for h in history) / len(history) * 1.5
    slow = [h for h in history if _time(h) > threshold]
    if not slow:
        return 0.0
    return sum(1 for h in slow if h.get("is_correct")) / len(slow)


def compute_endurance(history: list) -> float:
    """Penalise accuracy lost between the first and second half of the session."""
    if not history or len(history) < 5:
        return 0.0
    middle = len(history) // 2
    first_half, second_half = history[:middle], history[middle:]
    first = sum(1 for h in first_half if h.get("is_correct")) / len(first_half)
    second = sum(1 for h in second_half if h.get("is_correct")) / len(second_half)
    return _clamp01(1 - (first - second) * 2)


def compute_self_regulation(history: list, promotion_count: int) -> float:
    """Recovery after level drops plus a flat bonus for any promotion.

    A drop event is an entry whose drop flag is set while the previous
    entry's is not. It counts as recovered when at least two of the next
    three answers are correct.
    """
    if not history or len(history) < 3:
        return 0.0
    recovered = 0
    drop_events = 0
    for i in range(1, len(history)):
        if history[i].get("has_dropped_level") and not history[i - 1].get("has_dropped_level"):
            drop_events += 1
            following = history[i + 1:i + 4]
            if sum(1 for h in following if h.get("is_correct")) >= 2:
                recovered += 1
    recovery_rate = recovered / drop_events if drop_events else 0.0
    bonus = 0.2 if promotion_count > 0 else 0.0
    return _clamp01(recovery_rate + bonus)


def _empty_profile() -> dict:
    return {
        "cda": {
            "knowledge_mastery": {},
            "adaptability": 0.0,
            "consistency": 0.0,
            "recovery": 0.0,
            "error_persistence": 0.0,
        },
        "executive_function": {
            "processing_speed": 0.0,
            "impulsivity_control": 0.0,
            "analytical_thinking": 0.0,
            "endurance": 0.0,
            "self_regulation": 0.0,
        },
        "professional_summary": INSUFFICIENT_DATA_MESSAGE,
    }


def analyze_cognitive_profile(summary: dict | None) -> dict:
    """Compute every index and the generated paragraph for a summary.

    Returns a dict with "cda", "executive_function" and
    "professional_summary" keys. Missing or empty history yields zeros.
    """
    if not summary:
        return _empty_profile()
    history = summary.get("performance_history") or []
    if not history:
        return _empty_profile()

    category_performance = summary.get("category_performance") or {}
    drop_count = summary.get("drop_count") or 0
    promotion_count = summary.get("promotion_count") or 0

    profile = {
        "cda": {
            "knowledge_mastery": compute_knowledge_mastery(history, category_performance),
            "adaptability": _clamp01(compute_adaptability(history)),
            "consistency": _clamp01(compute_consistency(history)),
            "recovery": _clamp01(compute_recovery(drop_count, promotion_count)),
            "error_persistence": _clamp01(compute_error_persistence(history)),
        },
        "executive_function": {
            "processing_speed": _clamp01(compute_processing_speed(history)),
            "impulsivity_control": _clamp01(1 - compute_impulsivity(history)),
            "analytical_thinking": _clamp01(compute_analytical_thinking(history)),
            "endurance": _clamp01(compute_endurance(history)),
            "self_regulation": _clamp01(compute_self_regulation(history, promotion_count)),
        },
    }
    profile["professional_summary"] = generate_professional_summary(profile, summary)
    return profile


def _top_categories(category_performance: dict, count: int = 2) -> list[str]:
    ranked = sorted(
        (
            (name, data["correct"] / data["total"] if data.get("total") else 0.0)
            for name, data in category_performance.items()
        ),
        key=lambda item: item[1],
        reverse=True,
    )
    return [name for name, _ in ranked[:count]]


def generate_professional_summary(profile: dict, summary: dict) -> str:
    """Assemble the natural-language paragraph from threshold-gated fragments."""
    if not profile or not summary:
        return INSUFFICIENT_DATA_MESSAGE

    cda = profile.get("cda", {})
    executive = profile.get("executive_function", {})
    category_performance = summary.get("category_performance") or {}
    final_level = summary.get("final_level") or summary.get("current_level") or 1
    drop_count = summary.get("drop_count") or 0
    promotion_count = summary.get("promotion_count") or 0

    adaptability = cda.get("adaptability", 0)
    recovery = cda.get("recovery", 0)
    consistency = cda.get("consistency", 0)
    analytical = executive.get("analytical_thinking", 0)
    speed = executive.get("processing_speed", 0)
    impulse_control = executive.get("impulsivity_control", 0)
    endurance = executive.get("endurance", 0)
    self_regulation = executive.get("self_regulation", 0)

    parts = []

    if recovery >= 0.6 and drop_count > 0:
        parts.append("you demonstrate strong adaptive recovery")
        if promotion_count > 0:
            parts.append("with successful level promotions after initial difficulty drops")
    elif recovery < 0.4 and drop_count > 0:
        parts.append("you show moderate recovery patterns")

    if analytical >= 0.7:
        parts.append("analytical persistence")
    elif analytical >= 0.5:
        parts.append("moderate analytical thinking")

    timing = []
    if speed >= 0.7 and impulse_control >= 0.7:
        timing.append("a careful reasoning approach")
    elif speed < 0.4 and impulse_control < 0.5:
        timing.append("quick responses with occasional impulsivity")
    elif speed >= 0.6:
        timing.append("balanced response timing")

    top = _top_categories(category_performance)
    if top:
        category_list = " and ".join(name.lower() for name in top)
        if timing:
            timing.append(f"particularly in {category_list}-related questions")
        else:
            timing.append(f"strong performance in {category_list} categories")

    if timing:
        parts.append(f"Your response timing suggests {', '.join(timing)}.")

    if final_level == 3:
        assessment = ["university-level"]
    elif final_level == 2:
        assessment = ["secondary-level"]
    else:
        assessment = ["elementary-level"]

    assessment.append("analytical thinking" if analytical >= 0.6 else "cognitive engagement")

    if promotion_count > 0 and adaptability >= 0.6:
        assessment.append("with signs of upward adaptability")
    elif consistency >= 0.7:
        assessment.append("with consistent performance patterns")
    elif endurance >= 0.7:
        assessment.append("with strong cognitive endurance")

    if self_regulation >= 0.7:
        assessment.append("and effective self-regulation")

    parts.append(f"Overall, your cognitive engagement aligns closely with {', '.join(assessment)}.")

    return f"Based on your interaction pattern, {', '.join(parts)}."


def get_tatsuoka_reference() -> dict:
    return dict(TATSUOKA_REFERENCE)
