from jobportal.services import users, jobs, notifications, applications, posts

__all__ = [
    "users",
    "jobs",
    "notifications",
    "applications",
    "posts",
]
