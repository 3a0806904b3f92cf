"""
GraphQL documents for every Hygraph model the API touches.
Each Model generates the same operation set (list, count, get, create, update, delete, guarded updateMany)
so services only differ in their selection sets and where-clause builders.
"""
from dataclasses import dataclass

USER_REF = "{ id uid displayName email }"

USER_FIELDS = "id uid email displayName role isActive passwordChanged dateCreated dateUpdated"

COURSE_FIELDS = f"""
    id title description syllabus category duration maxStudents instructorName isActive
    dateCreated dateUpdated
    instructor {USER_REF}
"""

ENROLLMENT_FIELDS = f"""
    id enrollmentStatus progress completedLessons isActive enrolledAt lastAccessedAt
    student {USER_REF}
    course {{ id title category instructorName instructor {{ id }} }}
"""

ASSIGNMENT_FIELDS = f"""
    id title description instructions dueDate maxPoints isPublished dateCreated dateUpdated
    course {{ id title instructor {{ id }} }}
    teacher {USER_REF}
"""

EXAM_FIELDS = """
    id title description date startTime durationMinutes totalPoints questions dateCreated dateUpdated
    course { id title instructor { id } }
"""

BLOG_POST_FIELDS = f"""
    id title content excerpt slug status featuredImage tags category likes views
    isFeatured allowComments publishedAt dateCreated dateUpdated
    author {USER_REF}
"""

EVENT_FIELDS = f"""
    id title description date time location eventType isRecurring recurrencePattern recurrenceEndDate
    maxAttendees requiresRegistration registrationDeadline isActive isPublic dateCreated dateUpdated
    eventCreator {USER_REF}
    course {{ id title instructor {{ id }} }}
    attendees {{ id displayName }}
"""

FORUM_THREAD_FIELDS = f"""
    id title body category isPinned isLocked isActive likes views dateCreated dateUpdated
    author {USER_REF}
    course {{ id title }}
"""

FORUM_POST_FIELDS = f"""
    id body likes isActive dateCreated dateUpdated
    author {USER_REF}
    thread {{ id }}
    parentPost {{ id }}
"""

SUPPORT_TICKET_FIELDS = f"""
    id name email subject message supportTicketStatus priority category resolution
    resolvedAt closedAt dateCreated dateUpdated
    user {USER_REF}
    assignedTo {USER_REF}
"""


@dataclass(frozen=True)
class Model:
    name: str
    fields: str
    default_order: str = "dateCreated_DESC"

    @property
    def singular(self) -> str:
        return self.name[0].lower() + self.name[1:]

    @property
    def plural(self) -> str:
        return f"{self.singular}s"

    @property
    def list_query(self) -> str:
        return f"""
        query Get{self.name}s($first: Int, $skip: Int, $where: {self.name}WhereInput, $orderBy: {self.name}OrderByInput) {{
          {self.plural}(first: $first, skip: $skip, where: $where, orderBy: $orderBy) {{ {self.fields} }}
        }}
        """

    @property
    def count_query(self) -> str:
        return f"""
        query Count{self.name}s($where: {self.name}WhereInput) {{
          {self.plural}Connection(where: $where) {{ aggregate {{ count }} }}
        }}
        """

    @property
    def get_query(self) -> str:
        return f"""
        query Get{self.name}($where: {self.name}WhereUniqueInput!) {{
          {self.singular}(where: $where) {{ {self.fields} }}
        }}
        """

    @property
    def create_mutation(self) -> str:
        return f"""
        mutation Create{self.name}($data: {self.name}CreateInput!) {{
          create{self.name}(data: $data) {{ {self.fields} }}
        }}
        """

    @property
    def update_mutation(self) -> str:
        return f"""
        mutation Update{self.name}($id: ID!, $data: {self.name}UpdateInput!) {{
          update{self.name}(where: {{ id: $id }}, data: $data) {{ {self.fields} }}
        }}
        """

    @property
    def delete_mutation(self) -> str:
        return f"""
        mutation Delete{self.name}($id: ID!) {{
          delete{self.name}(where: {{ id: $id }}) {{ id }}
        }}
        """

    @property
    def update_many_mutation(self) -> str:
        """Conditional write: only rows still matching `where` are updated; `count` tells whether it applied."""
        return f"""
        mutation UpdateMany{self.name}s($where: {self.name}ManyWhereInput, $data: {self.name}UpdateManyInput!) {{
          updateMany{self.name}s(where: $where, data: $data) {{ count }}
        }}
        """


APP_USER = Model("AppUser", USER_FIELDS)
COURSE = Model("Course", COURSE_FIELDS)
ENROLLMENT = Model("Enrollment", ENROLLMENT_FIELDS, default_order="enrolledAt_DESC")
ASSIGNMENT = Model("Assignment", ASSIGNMENT_FIELDS, default_order="dueDate_ASC")
EXAM = Model("Exam", EXAM_FIELDS, default_order="date_ASC")
BLOG_POST = Model("BlogPost", BLOG_POST_FIELDS)
EVENT = Model("Event", EVENT_FIELDS, default_order="date_ASC")
FORUM_THREAD = Model("ForumThread", FORUM_THREAD_FIELDS)
FORUM_POST = Model("ForumPost", FORUM_POST_FIELDS, default_order="dateCreated_ASC")
SUPPORT_TICKET = Model("SupportTicket", SUPPORT_TICKET_FIELDS)
