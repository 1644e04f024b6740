"""DailyTrack core library — history, streak and export engines.

Public API re-exports for convenient imports:
    from tracker import calculate_history, calculate_streaks, build_export_data, ...
"""

# Workspace & config
from tracker.config import (
    workspace_root,
    profile_path,
    export_path,
    load_profile,
    save_profile,
    get_user_timezone,
    today_str,
    now_local,
    supabase_url,
    supabase_key,
    is_supabase_configured,
)

# File I/O
from tracker.fileio import (
    read_text,
    read_json,
    read_yaml,
    write_text_atomic,
    write_json_atomic,
    write_yaml_atomic,
)

# Dates
from tracker.dates import (
    to_date,
    date_key,
    iter_days,
    window_start,
    week_range,
    completion_key,
    format_short,
    format_long,
    format_full,
)

# Completion index
from tracker.completions import (
    COMPLETIONS_LIMIT,
    CompletionIndex,
    build_completion_index,
    apply_today_flags,
)

# History & streaks
from tracker.history import (
    DASHBOARD_WINDOW_DAYS,
    calculate_history,
    dashboard_window,
    completion_color,
)
from tracker.streaks import (
    STREAK_THRESHOLD,
    calculate_streaks,
    streak_runs,
)

# Week view
from tracker.week_view import (
    MAX_WEEK_OFFSET,
    build_week_view,
    summarize_week,
    is_valid_week_offset,
)

# Daily-log analytics
from tracker.log_patterns import (
    mood_label,
    mood_emoji,
    calculate_log_patterns,
    build_log_history_export,
)

# Export
from tracker.export import (
    build_week_summaries,
    build_export_data,
    export_json,
    write_export,
)

# Persistence
from tracker.store import Store, StoreError, SupabaseStore, MemoryStore

# Application state
from tracker.app_state import (
    AppState,
    load_tasks,
    load_streaks_and_history,
    load_daily_log,
    refresh_all,
    switch_view,
    invalidate_task_cache,
    load_history_week,
    navigate_history_week,
    add_task,
    edit_task_title,
    archive_task,
    mark_complete,
    mark_incomplete,
    set_mood,
    set_notes,
    set_field_value,
    add_log_field,
    delete_log_field,
    move_log_field,
    build_export,
)

# Models
from tracker.models import (
    Task,
    TodayTask,
    Completion,
    DailyLog,
    LogField,
    LogEntry,
    HistoryDay,
    Streaks,
    HabitStatus,
    DayLogView,
    DayDetail,
    WeekSummary,
    Profile,
)
