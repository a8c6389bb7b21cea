from clubhub.schemas.auth import AuthResponse, LoginRequest, SendCodeRequest, SendCodeResponse, SessionUser, VerifyRequest
from clubhub.schemas.profile import MeOut, ProfileOut, ProfileUpdate
from clubhub.schemas.club import ClubOut, ClubMemberOut, SubscriptionOut
from clubhub.schemas.announcement import AnnouncementOut, AnnouncementUpdate, CommentCreate, CommentOut
from clubhub.schemas.registration import RegistrationInfoOut, RosterEntry, RosterOut, MyRegistrationOut
from clubhub.schemas.admin import AdminDecisionRequest, PendingRequestOut
