# Sentinel pattern names
# The engine looks these up in the pattern catalog. Patterns may also be flagged
# explicitly (is_ake / is_vacation), in which case the flag wins over the name.
REST_PATTERN_NAME = 'rest'
AKE_PATTERN_NAME = 'ake'
VACATION_PATTERN_NAME = 'vacation'

# Night shift classification for patterns that do not carry an explicit flag.
# A working pattern is a night shift when its name contains one of these markers.
# Start times are not consulted; late or early shifts need is_night set.
NIGHT_NAME_MARKERS = ('night', '夜')

# Constraint set defaults (values used by a fresh constraint set)
# exact_rest_days_per_month = 0 disables the monthly rest-count reconciliation.
DEFAULT_CONSTRAINTS = {
    'max_consecutive_work_days': 5,
    'max_consecutive_night_shifts': 2,
    'min_rest_days_per_week': 2,
    'min_rest_days_per_month': 8,
    'exact_rest_days_per_month': 0,
    'max_night_shifts_per_week': 2,
    'max_night_shifts_per_month': 8,
    'max_work_hours_per_week': 40,
    'max_work_hours_per_month': 160,
    'night_shift_next_day_off': False,
    'is_active': True,
    'priority': 5,
}

# Default pattern catalog used when no configuration file exists.
# Order matters: working patterns are filled in catalog order every day.
DEFAULT_PATTERNS = [
    {'id': 'P01', 'name': 'Day', 'short_label': 'D', 'color': '#3B82F6',
     'start_time': '08:30', 'end_time': '17:00', 'is_workday': True, 'required_staff': 3},
    {'id': 'P02', 'name': 'Late', 'short_label': 'L', 'color': '#F59E0B',
     'start_time': '12:00', 'end_time': '20:30', 'is_workday': True, 'required_staff': 1},
    {'id': 'P03', 'name': 'Night', 'short_label': 'N', 'color': '#1E3A8A',
     'start_time': '16:30', 'end_time': '09:00', 'is_workday': True, 'required_staff': 2,
     'is_night': True},
    {'id': 'P04', 'name': REST_PATTERN_NAME, 'short_label': '-', 'color': '#9CA3AF',
     'is_workday': False, 'required_staff': 0},
    {'id': 'P05', 'name': AKE_PATTERN_NAME, 'short_label': 'A', 'color': '#8B5CF6',
     'is_workday': False, 'is_ake': True, 'required_staff': 0},
    {'id': 'P06', 'name': VACATION_PATTERN_NAME, 'short_label': 'V', 'color': '#10B981',
     'is_workday': False, 'is_vacation': True, 'required_staff': 0},
]

# Sentinel patterns created by ensure_default_patterns() when missing
DEFAULT_AKE_PATTERN = DEFAULT_PATTERNS[4]
DEFAULT_VACATION_PATTERN = DEFAULT_PATTERNS[5]

# Violation type tags
VIOLATION_REQUIRED_STAFF = 'required_staff'
VIOLATION_REST_DAYS = 'rest_days'
VIOLATION_MIN_REST_WEEK = 'min_rest_week'
VIOLATION_MIN_REST_MONTH = 'min_rest_month'

SEVERITY_ERROR = 'error'
SEVERITY_WARNING = 'warning'

# Stats rounding (one decimal place, as displayed in reports)
STATS_DECIMALS = 1
