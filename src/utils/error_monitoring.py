import json
import logging
import traceback
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple


class FeedMonitorError(Exception):
    """Base class for every failure a monitoring cycle can end with"""
    pass


class FetchError(FeedMonitorError):
    """Transport or HTTP failure while retrieving the feed"""
    pass


class ParseError(FeedMonitorError):
    """Malformed feed document or entry"""
    pass


class FeedParseError(ParseError):
    """The payload could not be read as a syndication feed"""
    pass


class MalformedDateError(ParseError):
    """An entry's publish date could not be parsed"""
    pass


class EntryNormalizationError(ParseError):
    """An entry could not be turned into a FeedRecord"""
    pass


class StateIOError(FeedMonitorError):
    """Filesystem read/write failure on the store or an audit file"""
    pass


class CorruptStateError(FeedMonitorError):
    """The existing store is present but does not hold valid records"""
    pass


@dataclass
class ErrorContext:
    """Context for an error occurrence"""
    error_type: str
    error_message: str
    stack_trace: str
    timestamp: datetime
    stage: str
    severity: str
    recovery_action: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ErrorSeverity(Enum):
    """Error severity levels"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ErrorHandler:
    """
    Records cycle failures and classifies them.

    Nothing here re-raises: the cycle boundary owns propagation, this class
    only keeps history for pattern detection and health reporting.
    """

    def __init__(self) -> None:
        self.error_history: Deque[ErrorContext] = deque(maxlen=100)
        self.error_counts: Dict[str, int] = defaultdict(int)

        self.recovery_strategies: Dict[type, Callable[[Exception], str]] = {
            FetchError: self._suggest_fetch_recovery,
            FeedParseError: self._suggest_parse_recovery,
            MalformedDateError: self._suggest_parse_recovery,
            EntryNormalizationError: self._suggest_parse_recovery,
            CorruptStateError: self._suggest_corrupt_state_recovery,
            StateIOError: self._suggest_io_recovery,
        }

        self.logger = logging.getLogger(__name__)

    def handle_error(
        self,
        error: Exception,
        stage: str,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        error_type = type(error).__name__
        severity = self.classify_severity(error)

        error_context = ErrorContext(
            error_type=error_type,
            error_message=str(error),
            stack_trace=''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            timestamp=datetime.now(),
            stage=stage,
            severity=severity.value,
            recovery_action=self.get_recovery_suggestion(error),
            metadata=context or {},
        )

        self.error_history.append(error_context)
        self.error_counts[error_type] += 1

        self.logger.debug(json.dumps({
            'event': 'cycle_error',
            'stage': stage,
            'severity': severity.value,
            'error_type': error_type,
            'error_message': error_context.error_message,
            'timestamp': error_context.timestamp.isoformat(),
        }))

        return error_context

    def classify_severity(self, error: Exception) -> ErrorSeverity:
        # Corrupt state needs an operator; every later cycle will fail the same way
        if isinstance(error, CorruptStateError):
            return ErrorSeverity.HIGH
        if isinstance(error, StateIOError):
            return ErrorSeverity.HIGH
        if isinstance(error, (FetchError, ParseError)):
            return ErrorSeverity.MEDIUM
        if isinstance(error, FeedMonitorError):
            return ErrorSeverity.LOW
        return ErrorSeverity.CRITICAL

    def get_recovery_suggestion(self, error: Exception) -> Optional[str]:
        for error_class, strategy in self.recovery_strategies.items():
            if isinstance(error, error_class):
                return strategy(error)
        return None

    def _suggest_fetch_recovery(self, error: Exception) -> str:
        return "Check network connectivity and the feed URL; the next cycle will try again."

    def _suggest_parse_recovery(self, error: Exception) -> str:
        return (
            "The feed returned data that could not be normalized. Inspect the raw feed; "
            "set SKIP_MALFORMED_ENTRIES=true to drop bad entries instead of aborting."
        )

    def _suggest_corrupt_state_recovery(self, error: Exception) -> str:
        return "Repair or move the store file aside; it will be recreated on the next cycle."

    def _suggest_io_recovery(self, error: Exception) -> str:
        return "Check permissions and free space for the store directory."

    def detect_error_patterns(self) -> List[str]:
        patterns: List[str] = []
        if not self.error_history:
            return patterns

        tuple_counts: Dict[Tuple[str, str], int] = defaultdict(int)
        for ctx in self.error_history:
            tuple_counts[(ctx.error_type, ctx.stage)] += 1

        for (etype, stage), count in tuple_counts.items():
            if count >= 3:
                patterns.append(
                    f"Repeated pattern: {etype} in {stage} occurred {count} times recently"
                )

        return patterns

    def get_error_statistics(self) -> Dict[str, Any]:
        total = sum(self.error_counts.values())
        last = self.error_history[-1] if self.error_history else None
        return {
            'total_errors': total,
            'error_types': dict(self.error_counts),
            'last_error': f"{last.error_type} in {last.stage}: {last.error_message}" if last else None,
        }
