# Vehicle Registration Portal — Database Models
# Import all models here for SQLAlchemy discovery

from vehicle_portal.models.account import Account, AccountRole                      # noqa
from vehicle_portal.models.registration import Registration, RegistrationStatus     # noqa
