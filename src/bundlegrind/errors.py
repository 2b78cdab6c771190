from __future__ import annotations


class BundleGrindError(RuntimeError):
    pass


class BuildError(BundleGrindError):
    pass


class ExecutionError(BundleGrindError):
    pass


class MissingSideEffectError(BundleGrindError):
    def __init__(self, effect: str, trial_id: str) -> None:
        super().__init__(f'Expected side effect "{effect}" not found in traces for {trial_id}.')
        self.effect = effect
        self.trial_id = trial_id


class PhaseTimeoutError(BundleGrindError):
    def __init__(self, phase: str, timeout_s: float) -> None:
        super().__init__(f"{phase} timed out after {timeout_s}s")
        self.phase = phase
        self.timeout_s = timeout_s


class UnknownFailureCategory(BundleGrindError):
    def __init__(self, error_text: str) -> None:
        super().__init__(f"Unknown error category for: {error_text}")
        self.error_text = error_text
