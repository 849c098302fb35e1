class OrganizationError(Exception):
    status = 400


class OrganizationNotFound(OrganizationError):
    """A super-admin asked for a domain that has no organization."""
    status = 404

    def __init__(self, message="Organization not found"):
        super().__init__(message)


class OrganizationUnavailable(OrganizationError):
    """The caller has no organization bound and did not pick one."""
    status = 400

    def __init__(self, message="Organization not available for this account."):
        super().__init__(message)


class OrganizationConflict(OrganizationError):
    status = 400
