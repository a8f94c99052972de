from .profile import CurrentUser, ProfileBasic
from .notification import NotificationCreate, NotificationOut, NotificationList
from .comment import CommentCreate, CommentUpdate, CommentOut
from .reminder import ReminderPolicy, ReminderPolicyUpdate, OverdueReminders
from .alerts import Severity, ReminderOutcome, OverdueDeliverable, UpcomingDeadline, AlertsOut, ReminderResult, ReminderSummary
from .social_post import SocialPostCreate, SocialPostUpdate, SocialPostOut, StatusUpdate
