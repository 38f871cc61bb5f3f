"""
Vietnamese strings. Missing keys fall back to English.
"""

STRINGS = {
    "error": "⚠️ Đã xảy ra lỗi. Vui lòng thử lại sau.",
    "no_permission": "❌ Bạn cần quyền **Quản lý máy chủ** để thay đổi cài đặt.",

    "join": {
        "success": "✅ Tôi đã tham gia **{0}**!",
        "user_not_in_vc": "❌ Bạn cần vào kênh thoại trước!",
        "already_connected": "❌ Tôi đã kết nối với **{0}** rồi!",
        "in_use_elsewhere": "❌ Tôi đang được sử dụng trong <#{0}>. Vui lòng đợi cho đến khi họ hoàn thành.",
        "connecting": "🛜 Đang kết nối tới **{0}**...",
        "failed": "❌ Không thể kết nối với kênh thoại. Vui lòng thử lại.",
    },

    "leave": {
        "success": "👋🏻 Đã rời khỏi kênh thoại!",
        "not_connected": "❌ Tôi không kết nối với kênh thoại nào!",
    },

    "say": {
        "success": "🎤 Tin nhắn đã được gửi!",
        "empty_message": "❌ Vui lòng cung cấp tin nhắn để nói.",
    },

    "my_language": {
        "current": "🗣️ Ngôn ngữ hiện tại của bạn là **{0}**.",
        "updated": "✅ Ngôn ngữ của bạn đã được đặt thành **{0}**!",
        "reset": "✅ Tùy chọn ngôn ngữ của bạn đã được đặt lại. Bạn sẽ sử dụng ngôn ngữ mặc định của máy chủ (**{0}**).",
        "invalid": "❌ Ngôn ngữ không được hỗ trợ. Các ngôn ngữ có sẵn: {0}",
    },

    "settings": {
        "current": "**Cài đặt máy chủ hiện tại**\nNgôn ngữ: {0}\nThông báo tên người dùng: {1}\nThông báo tham gia/rời đi: {2}",
        "language": {
            "changed": "✅ Ngôn ngữ máy chủ đã được đặt thành **{0}**!",
            "invalid": "❌ Mã ngôn ngữ không hợp lệ. Các ngôn ngữ có sẵn: {0}",
        },
        "join_leave": {
            "enabled": "✅ Thông báo tham gia/rời đi đã được bật.",
            "disabled": "✅ Thông báo tham gia/rời đi đã bị tắt.",
        },
        "usernames": {
            "enabled": "✅ Tên người dùng sẽ được thông báo.",
            "disabled": "✅ Tên người dùng sẽ không còn được thông báo.",
        },
    },

    "help": {
        "title": "✨ Các lệnh của Yapper",
        "join": "Tham gia kênh thoại của bạn",
        "leave": "Rời khỏi kênh thoại",
        "say": "Yêu cầu bot nói điều gì đó",
        "my_language": "Đặt ngôn ngữ TTS cá nhân của bạn",
        "settings": "Thay đổi cài đặt máy chủ",
        "help": "Hiển thị hướng dẫn này",
    },

    "voice_events": {
        "user_joined": "{0} đã tham gia kênh",
        "user_left": "{0} đã rời kênh",
        "kicked": "👢 Tôi đã bị xóa khỏi kênh thoại.",
    },
}
