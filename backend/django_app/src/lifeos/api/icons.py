"""Keyword based emoji icons for todos."""

DEFAULT_ICON = '📌'

ICON_RULES = [
    # Communication
    (('call', 'phone', 'ring', 'dial'), '📞'),
    (('email', 'mail', 'send email', 'inbox'), '📧'),
    (('text', 'message', 'sms', 'whatsapp', 'chat'), '💬'),
    (('meeting', 'meet', 'catch up', 'sync', 'standup', '1:1'), '🤝'),
    (('zoom', 'video call', 'teams', 'google meet'), '📹'),
    # Fitness & health
    (('workout', 'exercise', 'gym', 'lift', 'training', 'strength'), '🏋️'),
    (('run', 'running', 'jog', 'sprint'), '🏃'),
    (('walk', 'steps', 'walking'), '🚶'),
    (('hike', 'hiking', 'trail'), '🥾'),
    (('yoga', 'stretch', 'meditat'), '🧘'),
    (('swim', 'pool', 'swimming'), '🏊'),
    (('weigh', 'scale', 'body scan', 'measurement'), '⚖️'),
    (('meal prep', 'cook', 'recipe'), '🍳'),
    (('water', 'hydrat'), '💧'),
    (('sleep', 'nap', 'rest', 'bed'), '😴'),
    (('vitamin', 'supplement', 'medicine', 'pill', 'medication'), '💊'),
    # Errands
    (('groceries', 'grocery', 'shopping', 'store', 'buy', 'purchase'), '🛒'),
    (('clean', 'tidy', 'vacuum', 'laundry', 'wash', 'dishes'), '🧹'),
    (('dinner', 'lunch', 'breakfast', 'eat'), '🍽️'),
    (('drive', 'car', 'uber', 'pick up', 'drop off', 'school'), '🚗'),
    (('doctor', 'dentist', 'appointment', 'checkup', 'health'), '🏥'),
    (('pay', 'bill', 'payment', 'invoice', 'finance', 'bank', 'transfer'), '💰'),
    (('fix', 'repair', 'maintenance'), '🔧'),
    (('trash', 'garbage', 'recycle', 'throw out'), '🗑️'),
    # Work
    (('work', 'office', 'task', 'project', 'deadline'), '💼'),
    (('write', 'blog', 'article', 'document', 'report'), '✍️'),
    (('code', 'deploy', 'build', 'dev', 'programming', 'debug'), '💻'),
    (('design', 'figma', 'mockup', 'wireframe'), '🎨'),
    (('review', 'feedback', 'approve'), '📋'),
    (('plan', 'strategy', 'roadmap', 'brainstorm'), '🗺️'),
    (('present', 'presentation', 'slides', 'pitch'), '📊'),
    # Personal
    (('birthday', 'gift', 'party'), '🎁'),
    (('date', 'valentine'), '❤️'),
    (('kids', 'children', 'homework', 'parent'), '👨‍👧‍👦'),
    (('read', 'book', 'study', 'learn'), '📚'),
    (('travel', 'trip', 'flight', 'hotel', 'vacation', 'pack'), '✈️'),
    # Calendar
    (('schedule', 'calendar', 'remind', 'reminder'), '📅'),
    (('due', 'urgent', 'asap'), '⏰'),
]


def assign_todo_icon(title):
    lower = (title or '').lower()
    for keywords, icon in ICON_RULES:
        if any(kw in lower for kw in keywords):
            return icon
    return DEFAULT_ICON
