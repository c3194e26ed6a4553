"""
FILE: teamboard/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - TASK_TYPES: All valid task types
  - ROLE_ADMIN, ROLE_USER: Team membership roles
  - STATUS_ACTIVE, STATUS_INVITED: Team membership statuses
  - DEFAULT_COLUMNS: Columns seeded on a new board
  - FIRST_POSITION: Rank of the first task/column
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Positions are 0-based everywhere (tasks and columns)
"""

# Task types
TASK_TYPE_BUG = "Bug"
TASK_TYPE_FEATURE = "Feature"
TASK_TYPE_STORY = "Story"
TASK_TYPES = (TASK_TYPE_BUG, TASK_TYPE_FEATURE, TASK_TYPE_STORY)
DEFAULT_TASK_TYPE = TASK_TYPE_FEATURE

# Team membership
ROLE_ADMIN = "Admin"
ROLE_USER = "User"
ROLES = (ROLE_ADMIN, ROLE_USER)

STATUS_ACTIVE = "ACTIVE"
STATUS_INVITED = "INVITED"

# Boards
DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")
BOARD_NAME_MIN_LENGTH = 3
BOARD_DESCRIPTION_MIN_LENGTH = 5

# Ordering
FIRST_POSITION = 0
