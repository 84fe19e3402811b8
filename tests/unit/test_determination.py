"""Tests for workflow determination."""

from leaveflow.services.workflow import (
    ApproverRole,
    ExternalClearanceGate,
    OrganizationResolver,
    WorkflowDeterminer,
)

from workflow_support import ROUTING, build_org_store, build_settings

R = ApproverRole


class TestWorkflowDeterminer:
    """Tests for WorkflowDeterminer."""

    def setup_method(self):
        """Set up test fixtures."""
        settings = build_settings()
        self.store = build_org_store()
        self.determiner = WorkflowDeterminer(
            OrganizationResolver(ROUTING),
            ExternalClearanceGate(settings.external_clearance_leave_types),
            hr_exempt_grades=settings.hr_validation_exempt_grades,
            hr_exempt_day_threshold=settings.hr_validation_day_threshold,
        )

    def roles(self, staff_id, leave_type="ANNUAL", day_count=10, held=()):
        plan = self.determiner.determine(self.store.profiles[staff_id], leave_type, day_count, held)
        return [level.approver_role for level in plan.levels]

    def test_standard_unit_chain(self):
        """Staff in an ordinary unit go through every tier."""
        assert self.roles("S001") == [
            R.SUPERVISOR,
            R.UNIT_HEAD,
            R.HEAD_OF_DEPARTMENT,
            R.HR_OFFICER,
            R.CHIEF_DIRECTOR,
        ]

    def test_levels_are_contiguous_from_one(self):
        """Levels are numbered 1..N."""
        for staff_id in ["S001", "S002", "S003", "S004", "S010", "CD1"]:
            plan = self.determiner.determine(self.store.profiles[staff_id], "ANNUAL", 3)
            assert [level.level for level in plan.levels] == list(range(1, len(plan.levels) + 1))

    def test_independent_unit_skips_directorate(self):
        """Independent units have their own head and no directorate tier."""
        assert self.roles("S002") == [
            R.SUPERVISOR,
            R.HEAD_OF_INDEPENDENT_UNIT,
            R.HR_OFFICER,
            R.CHIEF_DIRECTOR,
        ]

    def test_hr_unit_uses_hr_director(self):
        """HR-unit staff are validated by the HR director, not an HR officer."""
        assert self.roles("S003") == [
            R.SUPERVISOR,
            R.UNIT_HEAD,
            R.HR_DIRECTOR,
            R.CHIEF_DIRECTOR,
        ]

    def test_audit_unit_uses_auditor(self):
        """The audit unit routes through the auditor and reports to the top."""
        assert self.roles("S004") == [
            R.SUPERVISOR,
            R.AUDITOR,
            R.HR_OFFICER,
            R.CHIEF_DIRECTOR,
        ]

    def test_missing_org_data_omits_tiers(self):
        """Tiers without org data are left out and reported."""
        plan = self.determiner.determine(self.store.profiles["S010"], "ANNUAL", 10)

        assert [l.approver_role for l in plan.levels] == [
            R.SUPERVISOR,
            R.HR_OFFICER,
            R.CHIEF_DIRECTOR,
        ]
        assert plan.omitted_tiers == ["unit", "directorate"]

    def test_exempt_grade_short_leave_skips_hr(self):
        """Exempt grades skip HR validation at or below the day threshold."""
        assert self.roles("S010", day_count=5) == [R.SUPERVISOR, R.CHIEF_DIRECTOR]
        assert R.HR_OFFICER in self.roles("S010", day_count=6)

    def test_external_clearance_forces_hr_validation(self):
        """Clearance leave types always need HR validation."""
        plan = self.determiner.determine(self.store.profiles["S010"], "Study with pay", 2)

        assert plan.requires_external_clearance is True
        assert R.HR_OFFICER in [l.approver_role for l in plan.levels]

    def test_top_of_hierarchy(self):
        """Staff without a supervisor only need the final authority."""
        profile = self.store.profiles["CD1"].model_copy(update={"staff_id": "TOP1"})

        plan = self.determiner.determine(profile, "ANNUAL", 3)
        assert [l.approver_role for l in plan.levels] == [R.CHIEF_DIRECTOR]

        plan = self.determiner.determine(profile, "SECONDMENT", 3)
        assert [l.approver_role for l in plan.levels] == [R.HR_OFFICER, R.CHIEF_DIRECTOR]

    def test_chief_director_applicant_ends_with_hr_director(self):
        """The final authority cannot approve their own leave."""
        assert self.roles("CD1", held=[R.CHIEF_DIRECTOR]) == [R.HR_DIRECTOR]

    def test_held_roles_are_skipped(self):
        """A unit head's own leave skips the unit head tier."""
        roles = self.roles("UH1", held=[R.UNIT_HEAD])

        assert R.UNIT_HEAD not in roles
        assert roles[0] == R.SUPERVISOR
        assert roles[-1] == R.CHIEF_DIRECTOR

    def test_clearance_leave_keeps_hr_validation_for_hr_officer(self):
        """An HR officer's clearance leave is still validated by HR."""
        plan = self.determiner.determine(
            self.store.profiles["S001"], "Secondment", 10, [R.HR_OFFICER]
        )

        assert plan.requires_external_clearance is True
        assert [level.approver_role for level in plan.levels] == [
            R.SUPERVISOR,
            R.UNIT_HEAD,
            R.HEAD_OF_DEPARTMENT,
            R.HR_OFFICER,
            R.CHIEF_DIRECTOR,
        ]

    def test_hr_officer_annual_leave_skips_hr_validation(self):
        assert R.HR_OFFICER not in self.roles("S001", held=[R.HR_OFFICER])

    def test_directorate_from_routing_table(self):
        """A unit mapped to a directorate gets that directorate's head."""
        plan = self.determiner.determine(self.store.profiles["P001"], "ANNUAL", 10)

        assert [level.approver_role for level in plan.levels] == [
            R.SUPERVISOR,
            R.UNIT_HEAD,
            R.HEAD_OF_DEPARTMENT,
            R.HR_OFFICER,
            R.CHIEF_DIRECTOR,
        ]
        assert plan.omitted_tiers == []
