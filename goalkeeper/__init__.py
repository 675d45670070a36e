"""GoalKeeper core library: daily goals, end-of-day scoring, history.

Public API re-exports for convenient imports:
    from goalkeeper import open_controller, GoalController, load_state, ...
"""

# Workspace & config
from goalkeeper.workspace import (
    workspace_root,
    configure_logging,
    config_path,
    hooks_config_path,
    data_dir,
    load_config,
    ensure_workspace,
    get_user_timezone,
)

# Models
from goalkeeper.models import (
    Goal,
    UserProfile,
    DailyRecord,
    AppState,
    Feedback,
    PendingDay,
    Config,
    ScoringConfig,
)

# Errors
from goalkeeper.exceptions import (
    GoalKeeperError,
    NoGoalsError,
    DayPendingError,
    NoPendingDayError,
)

# Persistence
from goalkeeper.storage import (
    STORAGE_KEY,
    FileBlobStore,
    MemoryBlobStore,
    load_state,
    save_state,
    persister,
)

# Scoring
from goalkeeper.rating import (
    completion_rate,
    fallback_score,
    tone_for_score,
    fallback_feedback,
)
from goalkeeper.scoring import (
    ScoringRequest,
    ScoringService,
    build_request,
    parse_feedback,
)

# Controller
from goalkeeper.controller import GoalController
from goalkeeper.session import open_controller

# History
from goalkeeper.analytics import HistorySummary, summarize_history
from goalkeeper.trend import EMPTY_TREND, trend_points, trend_scores, trend_figure, render_trend_html
