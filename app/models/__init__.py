from .profile import Profile, ProfileRole
from .client import Client
from .project import Project, ProjectStatus
from .deliverable import Deliverable, DeliverableStatus
from .notification import Notification, NotificationType
from .comment import Comment
from .social_post import SocialPost, SocialPlatform, PostStatus
