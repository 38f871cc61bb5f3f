"""
English strings
"""

STRINGS = {
    "error": "⚠️ Something went wrong. Please try again later.",
    "no_permission": "❌ You need the **Manage Server** permission to change these settings.",

    "join": {
        "success": "✅ Successfully joined **{0}**! I'll read messages sent by people in the channel.",
        "user_not_in_vc": "❌ You are not in a VC.",
        "already_connected": "❌ I'm already connected to **{0}**!",
        "in_use_elsewhere": "❌ I'm currently in use in <#{0}>. Please wait until they are finished.",
        "connecting": "🛜 Connecting to **{0}**...",
        "failed": "❌ Failed to connect to the voice channel. Please try again.",
    },

    "leave": {
        "success": "👋🏻 Left voice!",
        "not_connected": "❌ I am not currently in a VC.",
    },

    "say": {
        "success": "🎤 Queued!",
        "empty_message": "❌ Please provide a message to say.",
    },

    "my_language": {
        "current": "🗣️ Your current language is **{0}**.",
        "updated": "✅ Your language has been set to **{0}**!",
        "reset": "✅ Your language preference has been reset. You'll use the server default (**{0}**).",
        "invalid": "❌ That language isn't supported. Available languages: {0}",
    },

    "settings": {
        "current": "**Current Server Settings**\nLanguage: {0}\nUsernames announced: {1}\nJoin/leave announcements: {2}",
        "language": {
            "changed": "✅ Server language has been set to **{0}**!",
            "invalid": "❌ Invalid language code. Available languages: {0}",
        },
        "join_leave": {
            "enabled": "✅ Join/leave announcements have been enabled.",
            "disabled": "✅ Join/leave announcements have been disabled.",
        },
        "usernames": {
            "enabled": "✅ Usernames will be announced.",
            "disabled": "✅ Usernames will no longer be announced.",
        },
    },

    "help": {
        "title": "✨ Yapper Commands",
        "description": "I read messages aloud in your voice channel using text-to-speech.",
        "join": "Join your voice channel",
        "leave": "Leave the voice channel",
        "say": "Have me say something",
        "my_language": "Set your personal TTS language",
        "settings": "Change server settings (Manage Server)",
        "help": "Show this help message",
        "listening": "Listening Mode",
        "listening_value": "Once I'm in your voice channel, I read messages from people in that channel.",
        "language": "Server Language",
        "footer": "Powered by Google Translate text-to-speech",
    },

    "voice_events": {
        "user_joined": "{0} joined the channel",
        "user_left": "{0} left the channel",
        "kicked": "👢 I was removed from the voice channel.",
        "reconnecting": "🛜 Trying to reconnect to **{0}**...",
    },
}
