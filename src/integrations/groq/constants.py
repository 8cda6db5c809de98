# integrations/groq/constants.py

DEFAULT_MODEL = 'llama-3.3-70b-versatile'

# Default settings for different task types
TASK_SETTINGS = {
    'email_classification': {
        'temperature': 0.1,
        'max_completion_tokens': 10
    },
    'reply_generation': {
        'temperature': 0.6,
        'max_completion_tokens': 1024
    }
}
