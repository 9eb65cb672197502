"""Rule-based call outcome classification and sentiment scoring.

Used when the voice platform's own classifiers leave outcome or sentiment
empty. Both are keyword heuristics over the transcript plus the structured
fields of the call; neither calls out to a model.
"""

from dataclasses import dataclass, field
from typing import Optional

BOOKED = "BOOKED"
NOT_INTERESTED = "NOT_INTERESTED"
TRANSFERRED = "TRANSFERRED"
NO_MATCH = "NO_MATCH"
ERROR = "ERROR"

POSITIVE = "POSITIVE"
NEUTRAL = "NEUTRAL"
NEGATIVE = "NEGATIVE"

TRANSFER_KEYWORDS = ("transfer", "sales rep", "specialist", "human", "speak to someone")
NOT_INTERESTED_KEYWORDS = (
    "not interested",
    "no thanks",
    "not right now",
    "looking for something else",
    "different route",
    "too far",
    "rate too low",
)

POSITIVE_KEYWORDS = (
    "great", "perfect", "excellent", "thank you", "thanks", "appreciate",
    "sounds good", "deal", "yes", "sure", "absolutely", "fantastic",
    "wonderful", "good", "nice", "happy", "glad", "love", "awesome",
)
NEGATIVE_KEYWORDS = (
    "no", "not interested", "can't", "won't", "never", "bad", "terrible",
    "disappointed", "frustrated", "angry", "upset", "problem", "issue",
    "wrong", "too low", "too far", "waste", "ridiculous", "unacceptable",
)
NEUTRAL_KEYWORDS = (
    "maybe", "think about", "consider", "let me", "call back", "later",
    "not sure", "possibly", "perhaps", "okay", "alright", "fine",
)

# Calls shorter than this many seconds count as dropped/disengaged.
SHORT_CALL_SECONDS = 30
LONG_CALL_SECONDS = 120

OUTCOME_BASELINE = {
    BOOKED: (0.3, "Load booked (positive outcome)"),
    NOT_INTERESTED: (-0.2, "Declined offer (negative signal)"),
    TRANSFERRED: (0.0, "Transferred to sales (neutral)"),
    NO_MATCH: (-0.1, "No suitable loads (slight negative)"),
    ERROR: (-0.2, "Call error (negative)"),
}


@dataclass(frozen=True)
class OutcomeClassification:
    outcome: str
    outcome_reason: str
    confidence: float


@dataclass(frozen=True)
class SentimentAnalysis:
    sentiment: str
    sentiment_score: float
    indicators: list[str] = field(default_factory=list)


def _mentions_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def _count_mentions(text: str, keywords) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def classify_outcome(
    transcript: Optional[str] = None,
    load_id: Optional[str] = None,
    final_price: Optional[float] = None,
    mc_number: Optional[str] = None,
    duration: Optional[float] = None,
) -> OutcomeClassification:
    """First matching rule wins; NOT_INTERESTED is the conservative default."""
    text = (transcript or "").lower()

    if final_price and load_id:
        return OutcomeClassification(BOOKED, f"Load {load_id} booked at ${final_price:,.2f}", 0.95)

    if text and _mentions_any(text, TRANSFER_KEYWORDS):
        return OutcomeClassification(TRANSFERRED, "Call transferred to sales representative", 0.90)

    if not mc_number:
        return OutcomeClassification(ERROR, "Carrier MC number not verified", 0.85)

    if text and _mentions_any(text, NOT_INTERESTED_KEYWORDS):
        return OutcomeClassification(NOT_INTERESTED, "Carrier declined the load offer", 0.88)

    if not load_id:
        return OutcomeClassification(NO_MATCH, "No suitable loads found for carrier requirements", 0.80)

    if duration and duration < SHORT_CALL_SECONDS:
        return OutcomeClassification(
            ERROR, f"Call too short ({duration:g}s) - likely disconnected", 0.75
        )

    return OutcomeClassification(
        NOT_INTERESTED, "Call completed without booking - carrier not interested", 0.70
    )


def analyze_sentiment(
    transcript: Optional[str] = None,
    outcome: Optional[str] = None,
    duration: Optional[float] = None,
) -> SentimentAnalysis:
    """Score from 0.0 (very negative) to 1.0 (very positive), starting at 0.5.

    POSITIVE >= 0.6 > NEUTRAL >= 0.4 > NEGATIVE.
    """
    score = 0.5
    indicators: list[str] = []

    if outcome in OUTCOME_BASELINE:
        delta, note = OUTCOME_BASELINE[outcome]
        score += delta
        indicators.append(note)

    if transcript:
        text = transcript.lower()
        positive = _count_mentions(text, POSITIVE_KEYWORDS)
        negative = _count_mentions(text, NEGATIVE_KEYWORDS)
        neutral = _count_mentions(text, NEUTRAL_KEYWORDS)

        if positive:
            score += min(0.3, positive * 0.1)
            indicators.append(f"{positive} positive keywords detected")
        if negative:
            score -= min(0.3, negative * 0.1)
            indicators.append(f"{negative} negative keywords detected")
        if neutral and not positive and not negative:
            indicators.append(f"{neutral} neutral keywords detected")

    if duration:
        if duration > LONG_CALL_SECONDS:
            score += 0.1
            indicators.append("Long call duration (engaged carrier)")
        elif duration < SHORT_CALL_SECONDS:
            score -= 0.1
            indicators.append("Short call duration (disengaged)")

    # Rounded before bucketing so 0.5 + 0.1 counts as 0.6
    score = round(max(0.0, min(1.0, score)), 2)
    if score >= 0.6:
        sentiment = POSITIVE
    elif score >= 0.4:
        sentiment = NEUTRAL
    else:
        sentiment = NEGATIVE

    return SentimentAnalysis(sentiment=sentiment, sentiment_score=score, indicators=indicators)
