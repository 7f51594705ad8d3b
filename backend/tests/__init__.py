# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from tatame.models.category import Category  # noqa: F401
from tatame.models.event import Event, EventCategory  # noqa: F401
from tatame.models.match import Match  # noqa: F401
from tatame.models.profile import Profile  # noqa: F401
from tatame.models.registration import Registration  # noqa: F401
