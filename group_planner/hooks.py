app_name = "group_planner"
app_title = "Group Planner"
app_publisher = "Sebastian Ortiz Valencia"
app_description = "Disponibilidad de grupo, sugerencia de horarios y eventos recurrentes"
app_email = "sebastianortiz989@gmail.com"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Includes in <head>
# ------------------

# include js, css files in header of desk.html
# app_include_css = "/assets/group_planner/css/group_planner.css"
# app_include_js = "/assets/group_planner/js/group_planner.js"

# Site config
# ------------------
# Scheduling defaults can be overridden in site_config.json, see
# group_planner.api.shared.settings.DEFAULT_SETTINGS
# "group_planner": {"default_slot_duration_minutes": 15}
