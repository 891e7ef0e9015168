from jobportal.models.user import Role, User
from jobportal.models.job import Job
from jobportal.models.application import JobApplication
from jobportal.models.notification import Notification
from jobportal.models.post import Post

__all__ = ["Role", "User", "Job", "JobApplication", "Notification", "Post"]
