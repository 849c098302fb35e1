import pytest

from accounts import signin
from accounts.models import Teacher
from accounts.signin import OIDCProfile, SignInPolicy, SignInRejected, compute_role, resolve_sign_in

POLICY = SignInPolicy(
    allowed_domains=frozenset({"springfield.edu.au"}),
    admin_emails=frozenset({"principal@springfield.edu.au"}),
    super_admin_emails=frozenset({"ops@tracktally.app"}),
    exception_emails=frozenset({"relief.teacher@gmail.com"}),
)


def _reason(profile, policy=POLICY):
    with pytest.raises(SignInRejected) as excinfo:
        resolve_sign_in(profile, policy)
    return excinfo.value.reason


class TestComputeRole:

    def test_super_admin_list_wins(self):
        assert compute_role("ops@tracktally.app", POLICY, stored_role="teacher") == "superadmin"

    def test_admin_list(self):
        assert compute_role("principal@springfield.edu.au", POLICY) == "admin"

    def test_stored_admin_is_kept(self):
        assert compute_role("vp@springfield.edu.au", POLICY, stored_role="admin") == "admin"

    def test_stored_superadmin_not_on_list_is_demoted(self):
        assert compute_role("former@springfield.edu.au", POLICY, stored_role="superadmin") == "teacher"


@pytest.mark.django_db
class TestResolveSignIn:

    def test_first_sign_in_provisions_teacher(self, springfield):
        teacher = resolve_sign_in(OIDCProfile("Edna@Springfield.edu.au", "springfield.edu.au", "Edna"), POLICY)
        assert teacher.email == "edna@springfield.edu.au"
        assert teacher.role == Teacher.Role.TEACHER
        assert teacher.organization == springfield
        assert teacher.display_name == "Edna"

    def test_admin_list_promotes(self, springfield):
        teacher = resolve_sign_in(OIDCProfile("principal@springfield.edu.au"), POLICY)
        assert teacher.role == Teacher.Role.ADMIN

    def test_repeat_sign_in_reuses_row(self, springfield):
        first = resolve_sign_in(OIDCProfile("edna@springfield.edu.au"), POLICY)
        second = resolve_sign_in(OIDCProfile("edna@springfield.edu.au"), POLICY)
        assert first.pk == second.pk
        assert Teacher.objects.count() == 1

    def test_foreign_domain_rejected(self, springfield):
        assert _reason(OIDCProfile("someone@gmail.com")) == signin.DOMAIN_MISMATCH
        assert not Teacher.objects.exists()

    def test_hosted_domain_must_match_email(self, springfield):
        profile = OIDCProfile("edna@springfield.edu.au", hosted_domain="evil.test")
        assert _reason(profile) == signin.DOMAIN_MISMATCH

    def test_missing_email(self):
        assert _reason(OIDCProfile(None)) == signin.DOMAIN_MISMATCH

    def test_no_allowed_domains_rejects_everyone(self):
        policy = SignInPolicy(super_admin_emails=frozenset({"ops@tracktally.app"}))
        assert _reason(OIDCProfile("ops@tracktally.app"), policy) == signin.MISSING_DOMAIN

    def test_unknown_organization(self):
        assert _reason(OIDCProfile("edna@springfield.edu.au")) == signin.ORGANIZATION_MISSING

    def test_inactive_organization(self, springfield):
        springfield.active = False
        springfield.save()
        assert _reason(OIDCProfile("edna@springfield.edu.au")) == signin.INACTIVE

    def test_deactivated_account(self, make_teacher, springfield):
        make_teacher("edna@springfield.edu.au", organization=springfield, is_active=False)
        assert _reason(OIDCProfile("edna@springfield.edu.au")) == signin.INACTIVE

    def test_super_admin_has_no_organization(self):
        teacher = resolve_sign_in(OIDCProfile("ops@tracktally.app"), POLICY)
        assert teacher.role == Teacher.Role.SUPERADMIN
        assert teacher.organization is None

    def test_exception_email_needs_existing_account(self, springfield):
        assert _reason(OIDCProfile("relief.teacher@gmail.com")) == signin.EXCEPTION_MISSING_TEACHER

    def test_exception_email_keeps_stored_organization(self, make_teacher, springfield):
        make_teacher("relief.teacher@gmail.com", organization=springfield)
        teacher = resolve_sign_in(OIDCProfile("relief.teacher@gmail.com"), POLICY)
        assert teacher.organization == springfield

    def test_rejection_is_logged_with_reason(self, caplog):
        with caplog.at_level("WARNING", logger="accounts.signin"):
            _reason(OIDCProfile("someone@gmail.com"))
        record = next(r for r in caplog.records if r.getMessage() == "Sign-in blocked")
        assert record.reason == signin.DOMAIN_MISMATCH
