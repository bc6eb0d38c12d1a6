"""Quality gate: per-scene status machine and project report.

Scene lifecycle::

    pending -> approved | needs_review | rejected     (new analysis)
    needs_review -> approved                          (user approval)
    needs_review | approved -> rejected               (user rejection)
    rejected | needs_review -> pending                (regeneration attempt)
    rejected -> approved                              (user override, accepting an alternative)

The project report is derived data. It is rebuilt from every stored scene
status after each mutation, under the same lock as the mutation.
"""

from __future__ import annotations

import threading

from src.common.errors import InvalidTransitionError, RegenerationBudgetExceeded, UnknownSceneError
from src.common.logging import get_logger
from src.common.models import (
    AnalysisRecommendation,
    IssueSeverity,
    ProjectQualityReport,
    QualityAnalysis,
    QualityIssue,
    QualityThresholds,
    SceneQualityStatus,
    SceneStatus,
    utc_now,
)

logger = get_logger(__name__)


class QualityGate:
    """Quality decisions for one project. Safe to share between tasks and threads."""

    def __init__(self, project_id: str, thresholds: QualityThresholds | None = None):
        self.project_id = project_id
        self.thresholds = thresholds or QualityThresholds.from_settings()

        self._lock = threading.Lock()
        self._statuses: dict[int, SceneQualityStatus] = {}
        self._last_approved_at = None
        self._report = self._build_report()

    # =========================================================================
    # Queries
    # =========================================================================

    def report(self) -> ProjectQualityReport:
        """Latest project report."""
        with self._lock:
            return self._report

    def status(self, scene_index: int) -> SceneQualityStatus:
        with self._lock:
            return self._get(scene_index)

    @property
    def scene_indices(self) -> list[int]:
        with self._lock:
            return sorted(self._statuses)

    def can_proceed_to_render(self) -> tuple[bool, str]:
        """Whether the project may be rendered, with the reason."""
        report = self.report()
        if report.passes_threshold:
            return True, "All quality checks passed"
        if report.can_render:
            return True, f"{report.needs_review_count} scenes pending review - user can override"
        return False, "; ".join(report.blocking_reasons)

    # =========================================================================
    # Mutations
    # =========================================================================

    def register_scene(self, scene_index: int) -> SceneQualityStatus:
        """Add a scene in pending state. Registering twice is a no-op."""
        with self._lock:
            if scene_index not in self._statuses:
                self._statuses[scene_index] = SceneQualityStatus(scene_index=scene_index)
                self._rebuild()
            return self._statuses[scene_index]

    def record_analysis(self, analysis: QualityAnalysis) -> SceneQualityStatus:
        """Apply a new vision analysis to a pending scene.

        A critical issue rejects the scene whatever the score.
        """
        t = self.thresholds
        with self._lock:
            current = self._get(analysis.scene_index)
            if current.status != SceneStatus.PENDING:
                raise InvalidTransitionError(analysis.scene_index, current.status.value, "analyzed")

            auto_approved = False
            if (
                analysis.has_critical_issue
                or analysis.recommendation in (
                    AnalysisRecommendation.CRITICAL_FAIL,
                    AnalysisRecommendation.REGENERATE,
                )
                or analysis.overall_score < t.minimum_scene_score
            ):
                new_status = SceneStatus.REJECTED
            elif analysis.overall_score >= t.auto_approve_score:
                new_status = SceneStatus.APPROVED
                auto_approved = True
            else:
                new_status = SceneStatus.NEEDS_REVIEW

            updated = self._store(current.model_copy(update={
                "score": analysis.overall_score,
                "status": new_status,
                "issues": analysis.issues,
                "user_approved": False,
                "auto_approved": auto_approved,
                "updated_at": utc_now(),
            }))
            if auto_approved:
                self._last_approved_at = updated.updated_at
            self._rebuild()

        logger.info(
            "scene_analyzed",
            scene_index=analysis.scene_index,
            score=analysis.overall_score,
            status=new_status.value,
            critical=analysis.count(IssueSeverity.CRITICAL),
            recommendation=analysis.recommendation.value,
        )
        return updated

    def record_generation_failure(self, scene_index: int, reason: str) -> SceneQualityStatus:
        """A pending scene produced no usable asset. It becomes rejected."""
        with self._lock:
            current = self._get(scene_index)
            if current.status != SceneStatus.PENDING:
                raise InvalidTransitionError(scene_index, current.status.value, SceneStatus.REJECTED.value)

            updated = self._store(current.model_copy(update={
                "status": SceneStatus.REJECTED,
                "issues": (QualityIssue(
                    severity=IssueSeverity.MAJOR,
                    description=f"Generation failed: {reason}",
                ),),
                "updated_at": utc_now(),
            }))
            self._rebuild()

        logger.warning("scene_generation_failed", scene_index=scene_index, reason=reason)
        return updated

    def approve_scene(
        self,
        scene_index: int,
        override: bool = False,
        score: float | None = None,
        issues: tuple[QualityIssue, ...] | None = None,
    ) -> SceneQualityStatus:
        """User approval.

        Args:
            scene_index: Scene to approve
            override: Required to approve a rejected scene
            score: Replacement score, when accepting a different asset
            issues: Replacement issues, when accepting a different asset

        Raises:
            InvalidTransitionError: If the scene cannot be approved from its state
        """
        with self._lock:
            current = self._get(scene_index)
            allowed = {SceneStatus.NEEDS_REVIEW, SceneStatus.APPROVED}
            if override:
                allowed.add(SceneStatus.REJECTED)
            if current.status not in allowed:
                raise InvalidTransitionError(scene_index, current.status.value, SceneStatus.APPROVED.value)

            update = {
                "status": SceneStatus.APPROVED,
                "user_approved": True,
                "terminal_failure": False,
                "failure_reason": None,
                "updated_at": utc_now(),
            }
            if score is not None:
                update["score"] = score
            if issues is not None:
                update["issues"] = tuple(issues)
            updated = self._store(current.model_copy(update=update))
            self._last_approved_at = updated.updated_at
            self._rebuild()

        logger.info("scene_approved", scene_index=scene_index, override=override)
        return updated

    def reject_scene(self, scene_index: int, reason: str) -> SceneQualityStatus:
        """User rejection. Recorded as a major issue on the scene."""
        with self._lock:
            current = self._get(scene_index)
            if current.status == SceneStatus.PENDING:
                raise InvalidTransitionError(scene_index, current.status.value, SceneStatus.REJECTED.value)

            updated = self._store(current.model_copy(update={
                "status": SceneStatus.REJECTED,
                "user_approved": False,
                "auto_approved": False,
                "issues": current.issues + (QualityIssue(
                    severity=IssueSeverity.MAJOR,
                    description=f"User rejected: {reason}",
                ),),
                "updated_at": utc_now(),
            }))
            self._rebuild()

        logger.info("scene_rejected", scene_index=scene_index, reason=reason)
        return updated

    def begin_regeneration(self, scene_index: int) -> SceneQualityStatus:
        """Move a scene back to pending for a new attempt.

        Raises:
            RegenerationBudgetExceeded: If the scene already used every attempt
        """
        with self._lock:
            current = self._get(scene_index)
            if current.status not in (SceneStatus.REJECTED, SceneStatus.NEEDS_REVIEW):
                raise InvalidTransitionError(scene_index, current.status.value, SceneStatus.PENDING.value)
            if current.regeneration_count >= self.thresholds.max_regenerations:
                raise RegenerationBudgetExceeded(scene_index, self.thresholds.max_regenerations)

            updated = self._store(current.model_copy(update={
                "status": SceneStatus.PENDING,
                "score": None,
                "issues": (),
                "user_approved": False,
                "auto_approved": False,
                "regeneration_count": current.regeneration_count + 1,
                "terminal_failure": False,
                "failure_reason": None,
                "updated_at": utc_now(),
            }))
            self._rebuild()

        logger.debug(
            "scene_regeneration_started",
            scene_index=scene_index,
            regeneration_count=updated.regeneration_count,
        )
        return updated

    def mark_terminal_failure(self, scene_index: int, reason: str) -> SceneQualityStatus:
        """No further automatic attempts will be made for this scene."""
        with self._lock:
            current = self._get(scene_index)
            status = SceneStatus.REJECTED if current.status == SceneStatus.PENDING else current.status

            updated = self._store(current.model_copy(update={
                "status": status,
                "terminal_failure": True,
                "failure_reason": reason,
                "updated_at": utc_now(),
            }))
            self._rebuild()

        logger.warning(
            "scene_terminal_failure",
            scene_index=scene_index,
            reason=reason,
            regeneration_count=updated.regeneration_count,
        )
        return updated

    # =========================================================================
    # Internals (call with the lock held)
    # =========================================================================

    def _get(self, scene_index: int) -> SceneQualityStatus:
        try:
            return self._statuses[scene_index]
        except KeyError:
            raise UnknownSceneError(scene_index) from None

    def _store(self, status: SceneQualityStatus) -> SceneQualityStatus:
        self._statuses[status.scene_index] = status
        return status

    def _rebuild(self) -> None:
        self._report = self._build_report()

    def _build_report(self) -> ProjectQualityReport:
        """Recompute the whole report from the stored scene statuses."""
        t = self.thresholds
        statuses = tuple(self._statuses[i] for i in sorted(self._statuses))

        def count_status(s: SceneStatus) -> int:
            return sum(1 for st in statuses if st.status == s)

        def count_issues(sev: IssueSeverity) -> int:
            return sum(st.count(sev) for st in statuses)

        approved = count_status(SceneStatus.APPROVED)
        needs_review = count_status(SceneStatus.NEEDS_REVIEW)
        rejected = count_status(SceneStatus.REJECTED)
        pending = count_status(SceneStatus.PENDING)

        critical = count_issues(IssueSeverity.CRITICAL)
        major = count_issues(IssueSeverity.MAJOR)
        minor = count_issues(IssueSeverity.MINOR)

        scores = [st.score for st in statuses if st.score is not None]
        overall = sum(scores) / len(scores) if scores else 0.0

        reasons: list[str] = []
        if not statuses:
            reasons.append("No scenes registered")
        if scores and overall < t.minimum_project_score:
            reasons.append(f"Overall score {overall:.1f} below minimum {t.minimum_project_score:g}")
        if critical > t.maximum_critical_issues:
            reasons.append(f"{critical} critical issues (max {t.maximum_critical_issues})")
        if major > t.maximum_major_issues:
            reasons.append(f"{major} major issues (max {t.maximum_major_issues})")

        regenerable = sum(
            1 for st in statuses
            if st.status == SceneStatus.REJECTED and not st.terminal_failure
        )
        if regenerable:
            reasons.append(f"{regenerable} rejected scenes need regeneration")
        for st in statuses:
            if st.terminal_failure:
                reasons.append(
                    f"Scene {st.scene_index} failed after {st.regeneration_count} "
                    f"regenerations: {st.failure_reason}"
                )
        if pending:
            reasons.append(f"{pending} scenes pending analysis")

        review_blocks = t.require_user_approval and needs_review > 0
        if review_blocks:
            reasons.append(f"{needs_review} scenes need user review")

        passes = not reasons
        only_review_blocks = review_blocks and len(reasons) == 1

        return ProjectQualityReport(
            project_id=self.project_id,
            overall_score=overall,
            scene_statuses=statuses,
            approved_count=approved,
            needs_review_count=needs_review,
            rejected_count=rejected,
            pending_count=pending,
            critical_issue_count=critical,
            major_issue_count=major,
            minor_issue_count=minor,
            passes_threshold=passes,
            can_render=passes or only_review_blocks,
            blocking_reasons=tuple(reasons),
            last_approved_at=self._last_approved_at,
        )
