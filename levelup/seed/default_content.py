DEFAULT_CATEGORIES = [
    {
        "slug": "delegation",
        "title": "Delegation",
        "description": "Hand off work with clarity and keep ownership where it belongs.",
        "icon_type": "handshake",
        "sort_order": 1,
    },
    {
        "slug": "feedback",
        "title": "Feedback",
        "description": "Give and receive feedback that changes behaviour.",
        "icon_type": "message",
        "sort_order": 2,
    },
    {
        "slug": "meetings",
        "title": "Meetings",
        "description": "Run fewer, shorter and more useful meetings.",
        "icon_type": "calendar",
        "sort_order": 3,
    },
]

DEFAULT_CHAPTERS = [
    {
        "category": "delegation",
        "slug": "what-to-delegate",
        "title": "What to Delegate",
        "preview": "Sort your work into keep, share and hand off.",
        "duration": "6 min",
        "chapter_number": 1,
        "try_this_week": "List ten recurring tasks and mark one you will hand off by Friday.",
    },
    {
        "category": "delegation",
        "slug": "delegating-outcomes-not-tasks",
        "title": "Delegating Outcomes, Not Tasks",
        "preview": "Describe the result and the constraints, then step back.",
        "duration": "8 min",
        "chapter_number": 2,
        "try_this_week": "Rewrite one task request as an outcome with a deadline and a check-in.",
    },
    {
        "category": "feedback",
        "slug": "situation-behaviour-impact",
        "title": "Situation, Behaviour, Impact",
        "preview": "A three-part structure that keeps feedback specific.",
        "duration": "7 min",
        "chapter_number": 1,
        "try_this_week": "Give one piece of positive SBI feedback before Wednesday.",
    },
    {
        "category": "meetings",
        "slug": "does-this-need-a-meeting",
        "title": "Does This Need a Meeting?",
        "preview": "A quick test for replacing meetings with written updates.",
        "duration": "5 min",
        "chapter_number": 1,
        "try_this_week": "Cancel or shorten one recurring meeting.",
    },
]
