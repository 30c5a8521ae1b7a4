COMMON_HABITS = [
    {
        "name": "Make My Bed",
        "category": "lifestyle",
        "description": "Make your bed every morning with neatly arranged sheets",
        "verification_prompt": "Does this image show a properly made bed with neatly arranged sheets, minimal wrinkles, and pillows arranged neatly?",
        "icon": "🛏️",
        "difficulty": "easy",
        "popularity_score": 100,
    },
    {
        "name": "Go to the Gym",
        "category": "fitness",
        "description": "Visit the gym and complete a workout session",
        "verification_prompt": "Does this image show evidence of being at a gym or doing a workout? Valid evidence includes gym equipment, mirrors, weights, or active exercise.",
        "icon": "💪",
        "difficulty": "medium",
        "popularity_score": 95,
    },
    {
        "name": "Read for 30 Minutes",
        "category": "learning",
        "description": "Read a book or educational material for at least 30 minutes",
        "verification_prompt": "Does this image show someone reading a book or engaged with reading material? Valid evidence includes holding a book, an open book, or e-reader.",
        "icon": "📚",
        "difficulty": "easy",
        "popularity_score": 90,
    },
    {
        "name": "Drink Water",
        "category": "health",
        "description": "Drink at least 8 glasses of water throughout the day",
        "verification_prompt": "Does this image show someone drinking water or a water bottle? Valid evidence includes drinking water or a clearly visible water container.",
        "icon": "💧",
        "difficulty": "easy",
        "popularity_score": 88,
    },
    {
        "name": "Meditate",
        "category": "wellness",
        "description": "Practice meditation or mindfulness for at least 10 minutes",
        "verification_prompt": "Does this image show someone meditating or in a meditation setting? Valid evidence includes meditation posture, cushions, or peaceful setting.",
        "icon": "🧘",
        "difficulty": "medium",
        "popularity_score": 85,
    },
    {
        "name": "Walk 10,000 Steps",
        "category": "fitness",
        "description": "Walk at least 10,000 steps in a day",
        "verification_prompt": "Does this image show a step counter or fitness tracker displaying 10,000 or more steps?",
        "icon": "🚶",
        "difficulty": "medium",
        "popularity_score": 85,
    },
    {
        "name": "Go for a Run",
        "category": "fitness",
        "description": "Go running or jogging outdoors or on a treadmill",
        "verification_prompt": "Does this image show evidence of running or jogging? Valid evidence includes running attire, running location, running shoes, or active jogging.",
        "icon": "🏃",
        "difficulty": "medium",
        "popularity_score": 82,
    },
    {
        "name": "Practice Yoga",
        "category": "fitness",
        "description": "Complete a yoga session",
        "verification_prompt": "Does this image show someone doing yoga? Valid evidence includes a person in a yoga pose, yoga mat visible, or active yoga practice.",
        "icon": "🧘‍♀️",
        "difficulty": "medium",
        "popularity_score": 80,
    },
    {
        "name": "Take Vitamins",
        "category": "health",
        "description": "Take your daily vitamins or supplements",
        "verification_prompt": "Does this image show vitamins or supplements being taken? Valid evidence includes vitamin bottles, pills, or person taking supplements.",
        "icon": "💊",
        "difficulty": "easy",
        "popularity_score": 78,
    },
    {
        "name": "Clean/Tidy Space",
        "category": "lifestyle",
        "description": "Clean and organize your living or work space",
        "verification_prompt": "Does this image show a clean or tidy space, or someone cleaning? Valid evidence includes organized space, cleaning supplies, or before/after tidiness.",
        "icon": "🧹",
        "difficulty": "easy",
        "popularity_score": 76,
    },
    {
        "name": "Cook a Healthy Meal",
        "category": "health",
        "description": "Prepare a nutritious, home-cooked meal",
        "verification_prompt": "Does this image show cooking or meal preparation? Valid evidence includes food being prepared, cooking in progress, or a prepared healthy meal.",
        "icon": "🍳",
        "difficulty": "medium",
        "popularity_score": 75,
    },
    {
        "name": "Practice Gratitude",
        "category": "wellness",
        "description": "Write down three things you're grateful for",
        "verification_prompt": "Does this image show gratitude journaling or written gratitude? Valid evidence includes written gratitude list or gratitude journal.",
        "icon": "🙏",
        "difficulty": "easy",
        "popularity_score": 72,
    },
    {
        "name": "Journal",
        "category": "wellness",
        "description": "Write in your journal or diary",
        "verification_prompt": "Does this image show journaling or writing? Valid evidence includes an open journal with writing, a person writing, or pen and journal visible.",
        "icon": "✍️",
        "difficulty": "easy",
        "popularity_score": 70,
    },
    {
        "name": "Learn Something New",
        "category": "learning",
        "description": "Spend time learning a new skill or topic",
        "verification_prompt": "Does this image show someone engaged in learning? Valid evidence includes educational materials, online courses, tutorials, or study setup.",
        "icon": "🎓",
        "difficulty": "medium",
        "popularity_score": 68,
    },
    {
        "name": "Practice an Instrument",
        "category": "learning",
        "description": "Practice playing a musical instrument",
        "verification_prompt": "Does this image show someone practicing music or playing an instrument? Valid evidence includes holding an instrument, instrument visible, or music practice setup.",
        "icon": "🎸",
        "difficulty": "medium",
        "popularity_score": 65,
    },
]


def seed_common_habits(apps=None):
    """
    Create or update the catalog from COMMON_HABITS, keyed by name.
    Can be used in migrations or management commands.

    Yields (habit, created) tuples.
    """
    if apps:
        CommonHabit = apps.get_model('habits', 'CommonHabit')
    else:
        from .models import CommonHabit

    for entry in COMMON_HABITS:
        defaults = {key: value for key, value in entry.items() if key != 'name'}
        defaults.setdefault('verification_type', 'photo')
        defaults['is_active'] = True
        yield CommonHabit.objects.update_or_create(name=entry['name'], defaults=defaults)
