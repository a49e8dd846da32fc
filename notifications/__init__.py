from notifications.telegram_bot import TelegramBot, format_alert_message
