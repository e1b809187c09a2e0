"""
Default onboarding checklist templates.

Used by organization auto-provisioning, template reset, buddy-only reset and
the ``seed-buddy-checklist`` CLI command.

 3 regular categories  (tasks completed by the new employee)
 4 buddy categories    (tasks completed by the assigned buddy)

Buddy category ``order`` values start at 1 so they can be appended after the
highest existing order with ``max_order + order``.
"""

# ═════════════════════════════════════════════════════════════════════════════
# REGULAR: completed by the employee
# ═════════════════════════════════════════════════════════════════════════════

REGULAR_CHECKLIST_CATEGORIES = [
    {"name": "Your digital setup", "order": 0, "is_buddy_category": False,
     "tasks": [
         {"title": "Sign in to your laptop and set a password",
          "description": "Use the temporary credentials from IT and choose a new password on first sign-in.",
          "link": None},
         {"title": "Set up multi-factor authentication",
          "description": "Register the authenticator app on your phone for your work account.",
          "link": None},
         {"title": "Install the collaboration apps",
          "description": "Install chat, mail and calendar clients and sign in with your work account.",
          "link": None},
         {"title": "Add a profile photo",
          "description": "A photo makes it easier for colleagues to recognise you in meetings.",
          "link": None},
     ]},

    {"name": "Information", "order": 1, "is_buddy_category": False,
     "tasks": [
         {"title": "Read the employee handbook",
          "description": "Covers working hours, leave, expenses and the code of conduct.",
          "link": None},
         {"title": "Review the organization chart",
          "description": "Find your team, your manager and the people you will work with most.",
          "link": None},
         {"title": "Complete the security awareness course",
          "description": "Mandatory for all employees within the first two weeks.",
          "link": None},
     ]},

    {"name": "Practical things to sort out", "order": 2, "is_buddy_category": False,
     "tasks": [
         {"title": "Submit your bank details to payroll",
          "description": "Salary cannot be paid until payroll has your account details.",
          "link": None},
         {"title": "Pick up your access card",
          "description": "Reception issues access cards on weekdays before noon.",
          "link": None},
         {"title": "Register your emergency contact",
          "description": "Add a next-of-kin contact in the HR system.",
          "link": None},
     ]},
]


# ═════════════════════════════════════════════════════════════════════════════
# BUDDY: completed by the buddy, before and after the first day
# ═════════════════════════════════════════════════════════════════════════════

DEFAULT_BUDDY_CHECKLIST_CATEGORIES = [
    {"name": "When the contract is signed", "order": 1, "is_buddy_category": True,
     "tasks": [
         {"title": "Send a welcome message",
          "description": "Introduce yourself as the buddy and tell the new hire what to expect.",
          "link": None},
         {"title": "Agree on a first-day meeting point",
          "description": "Share the time and place where you will meet on day one.",
          "link": None},
     ]},

    {"name": "The week before the first day", "order": 2, "is_buddy_category": True,
     "tasks": [
         {"title": "Check that equipment is ordered",
          "description": "Confirm with IT that the laptop and phone will be ready.",
          "link": None},
         {"title": "Book a welcome lunch",
          "description": "Invite the team to lunch during the first week.",
          "link": None},
         {"title": "Add the new hire to team channels and meetings",
          "description": "Recurring meetings, chat channels and shared calendars.",
          "link": None},
     ]},

    {"name": "When the new hire is on site", "order": 3, "is_buddy_category": True,
     "tasks": [
         {"title": "Give an office tour",
          "description": "Kitchen, meeting rooms, fire exits and where to find supplies.",
          "link": None},
         {"title": "Introduce the new hire to the team",
          "description": "Walk around and introduce the closest colleagues in person.",
          "link": None},
         {"title": "Schedule a two-week check-in",
          "description": "Book a short follow-up to answer questions that came up.",
          "link": None},
     ]},

    {"name": "Make sure management announces the hire", "order": 4, "is_buddy_category": True,
     "tasks": [
         {"title": "Confirm the company-wide announcement",
          "description": "Check that management has announced the new hire internally.",
          "link": None},
     ]},
]


def _offset(categories, start):
    return [
        {**category, "order": start + index}
        for index, category in enumerate(categories)
    ]


DEFAULT_CHECKLIST_CATEGORIES = (
    REGULAR_CHECKLIST_CATEGORIES
    + _offset(DEFAULT_BUDDY_CHECKLIST_CATEGORIES, len(REGULAR_CHECKLIST_CATEGORIES))
)
