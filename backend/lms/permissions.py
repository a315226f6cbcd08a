"""Role permission table and ownership checks.

Every gated operation names a ``Capability``. The role table is a matrix whose
rows list, in ``Role`` declaration order, whether each role may exercise the
capability. The table is validated at import: a capability without a row, or a
row whose width differs from the number of roles, is a startup error, so adding
a role means revisiting every row.

A role check is necessary but not sufficient. Capabilities in
``OWNERSHIP_SCOPED`` are further narrowed for TEACHER actors to the entities
they teach or created (see ``ensure_owner``).
"""

from dataclasses import dataclass
from enum import Enum

from lms.errors import Forbidden
from lms.models.course import Course
from lms.models.meeting import Meeting
from lms.models.notice import Notice


class Role(str, Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    HEAD = "HEAD"
    MANAGEMENT = "MANAGEMENT"
    STUDENT = "STUDENT"


STAFF = frozenset({Role.ADMIN, Role.TEACHER, Role.HEAD, Role.MANAGEMENT})


class Capability(str, Enum):
    COURSE_CREATE = "course:create"
    COURSE_UPDATE = "course:update"
    COURSE_DELETE = "course:delete"
    COURSE_VIEW = "course:view"
    COURSE_LIST_TAUGHT = "course:list_taught"
    ENROLL_SELF = "enrollment:self"
    ENROLLMENT_MANAGE = "enrollment:manage"
    MATERIAL_UPLOAD = "material:upload"
    MATERIAL_MANAGE = "material:manage"
    MATERIAL_VIEW = "material:view"
    LECTURE_MANAGE = "lecture:manage"
    LECTURE_RECORD_UPLOAD = "lecture:record_upload"
    LECTURE_VIEW = "lecture:view"
    MEETING_MANAGE = "meeting:manage"
    MEETING_VIEW = "meeting:view"
    NOTICE_MANAGE = "notice:manage"
    NOTICE_VIEW = "notice:view"
    USER_MANAGE = "user:manage"
    ACTIVITY_VIEW = "activity:view"
    REPORT_VIEW = "report:view"


Y, N = True, False

# Columns follow Role declaration order:
#                                    ADMIN TEACHER HEAD MGMT STUDENT
_MATRIX = {
    Capability.COURSE_CREATE:         (Y,    N,     N,   Y,   N),
    Capability.COURSE_UPDATE:         (Y,    Y,     N,   Y,   N),
    Capability.COURSE_DELETE:         (Y,    Y,     Y,   Y,   N),
    Capability.COURSE_VIEW:           (Y,    Y,     Y,   Y,   Y),
    Capability.COURSE_LIST_TAUGHT:    (N,    Y,     N,   N,   N),
    Capability.ENROLL_SELF:           (N,    N,     N,   N,   Y),
    Capability.ENROLLMENT_MANAGE:     (Y,    Y,     Y,   Y,   N),
    Capability.MATERIAL_UPLOAD:       (Y,    Y,     N,   Y,   N),
    Capability.MATERIAL_MANAGE:       (Y,    Y,     Y,   Y,   N),
    Capability.MATERIAL_VIEW:         (Y,    Y,     Y,   Y,   Y),
    Capability.LECTURE_MANAGE:        (Y,    Y,     N,   Y,   N),
    Capability.LECTURE_RECORD_UPLOAD: (Y,    Y,     N,   N,   N),
    Capability.LECTURE_VIEW:          (Y,    Y,     Y,   Y,   Y),
    Capability.MEETING_MANAGE:        (N,    Y,     Y,   N,   N),
    Capability.MEETING_VIEW:          (Y,    Y,     Y,   Y,   Y),
    Capability.NOTICE_MANAGE:         (Y,    Y,     Y,   N,   N),
    Capability.NOTICE_VIEW:           (Y,    Y,     Y,   Y,   Y),
    Capability.USER_MANAGE:           (Y,    N,     Y,   N,   N),
    Capability.ACTIVITY_VIEW:         (Y,    N,     Y,   N,   N),
    Capability.REPORT_VIEW:           (Y,    N,     N,   Y,   N),
}


def _build_table(matrix: dict) -> dict[Capability, frozenset[Role]]:
    roles = tuple(Role)
    missing = [c.value for c in Capability if c not in matrix]
    if missing:
        raise RuntimeError(f"Capabilities without a permission row: {missing}")

    table = {}
    for capability, row in matrix.items():
        if len(row) != len(roles):
            raise RuntimeError(
                f"Permission row for {capability.value} has {len(row)} columns, expected {len(roles)}"
            )
        table[capability] = frozenset(role for role, allowed in zip(roles, row) if allowed)
    return table


PERMISSIONS = _build_table(_MATRIX)

OWNERSHIP_SCOPED = frozenset({
    Capability.COURSE_UPDATE,
    Capability.COURSE_DELETE,
    Capability.MEETING_MANAGE,
    Capability.NOTICE_MANAGE,
})

# Roles whose access to OWNERSHIP_SCOPED capabilities is narrowed to owned entities.
NARROWED_ROLES = frozenset({Role.TEACHER})


@dataclass(frozen=True)
class AuthContext:
    """The authenticated actor, passed explicitly into every service call."""

    id: str
    email: str
    name: str
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF


def allowed_roles(capability: Capability) -> list[Role]:
    eligible = PERMISSIONS[capability]
    return [role for role in Role if role in eligible]


def can(role: Role, capability: Capability) -> bool:
    return role in PERMISSIONS[capability]


def authorize(actor: AuthContext, capability: Capability) -> None:
    """Raise Forbidden unless the actor's role may exercise ``capability``."""
    if not can(actor.role, capability):
        raise Forbidden(
            "Insufficient permissions",
            required_roles=[r.value for r in allowed_roles(capability)],
            user_role=actor.role.value,
        )


def is_course_teacher(course, user_id: str) -> bool:
    return any(teacher.id == user_id for teacher in course.teachers)


def owns(actor: AuthContext, entity) -> bool:
    """Whether the actor teaches (Course) or created (Meeting, Notice) ``entity``."""
    if isinstance(entity, Course):
        return is_course_teacher(entity, actor.id)
    if isinstance(entity, Meeting):
        return entity.created_by == actor.id
    if isinstance(entity, Notice):
        return entity.posted_by == actor.id
    raise TypeError(f"No ownership rule for {type(entity).__name__}")


def ensure_owner(
    actor: AuthContext,
    capability: Capability,
    entity,
    message: str = "You can only modify resources you own",
) -> None:
    """Apply ownership narrowing after the target has been loaded.

    Only ownership-scoped capabilities exercised by a narrowed role are checked;
    every other eligible role passes through.
    """
    if capability not in OWNERSHIP_SCOPED or actor.role not in NARROWED_ROLES:
        return
    if not owns(actor, entity):
        raise Forbidden(message)
