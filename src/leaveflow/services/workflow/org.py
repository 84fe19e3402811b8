"""Organisation hierarchy lookups over a staff profile and the unit routing table."""

from leaveflow.services.workflow.schemas import (
    OrgRoutingConfig,
    StaffOrgProfile,
    UnitRouting,
)


class OrganizationResolver:
    """Answers hierarchy questions for workflow determination.

    Unit routing comes from an injected ``OrgRoutingConfig``. A unit absent
    from the table is treated as an ordinary unit inside the directorate
    recorded on the staff profile.
    """

    def __init__(self, routing: OrgRoutingConfig | None = None):
        self._routing = routing or OrgRoutingConfig()

    def unit_routing(self, profile: StaffOrgProfile) -> UnitRouting | None:
        return self._routing.get(profile.unit)

    def supervisor_of(self, profile: StaffOrgProfile) -> str | None:
        """Immediate supervisor or line manager, None at the top of the hierarchy."""
        return profile.supervisor_id

    def directorate_of(self, profile: StaffOrgProfile) -> str | None:
        routing = self.unit_routing(profile)
        if routing is not None and routing.directorate:
            return routing.directorate
        return profile.directorate

    def reports_to_top(self, profile: StaffOrgProfile) -> bool:
        """Whether the staff member's unit reports directly to the final authority."""
        routing = self.unit_routing(profile)
        return routing is not None and (routing.reports_to_chief_director or routing.independent)

    def is_independent_unit(self, profile: StaffOrgProfile) -> bool:
        routing = self.unit_routing(profile)
        return routing is not None and routing.independent

    def is_hr_unit(self, profile: StaffOrgProfile) -> bool:
        routing = self.unit_routing(profile)
        return routing is not None and routing.special_workflow == "HRMD"

    def is_audit_unit(self, profile: StaffOrgProfile) -> bool:
        routing = self.unit_routing(profile)
        return routing is not None and routing.special_workflow == "AUDIT"
