"""
Handles interactions with SQLite for the sake of managing per-server and per-user data
"""

# built-in
import os.path
from typing import NamedTuple

# PyPi
import sqlite3

# my modules
from ..utils.logging_utils import timestamp_print as tsprint

DB_DIR = "database"
DB_PATH = os.path.join(DB_DIR, "yapper.db")

DEFAULT_LANGUAGE = "en"

class ServerSettings(NamedTuple):
    language: str = DEFAULT_LANGUAGE
    disable_usernames: bool = False
    disable_join_leave: bool = False

def get_conn() -> sqlite3.Connection:
    return sqlite3.connect(DB_PATH, check_same_thread=False)

def init_db(db_path: str | None = None, default_language: str = DEFAULT_LANGUAGE) -> None:
    """
    Initializes the SQLite database, populating with tables if necessary

    :param str db_path: where the database file lives, keeps the current DB_PATH if None
    :param str default_language: the language new servers start with
    """
    global DB_PATH, DEFAULT_LANGUAGE

    if db_path:
        DB_PATH = db_path
    DEFAULT_LANGUAGE = default_language

    db_dir = os.path.dirname(DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True) # create database folder if doesn't exist

    with get_conn() as connection:
        cursor = connection.cursor()

        cursor.executescript("""
                            CREATE TABLE IF NOT EXISTS servers (
                                id INTEGER PRIMARY KEY AUTOINCREMENT,
                                guild_id TEXT UNIQUE NOT NULL,
                                language TEXT,
                                disable_usernames INTEGER NOT NULL DEFAULT 0,
                                disable_join_leave INTEGER NOT NULL DEFAULT 0
                            );

                            CREATE TABLE IF NOT EXISTS user_settings (
                                id INTEGER PRIMARY KEY AUTOINCREMENT,
                                user_id TEXT UNIQUE NOT NULL,
                                language TEXT
                            );
                            """)

def init_server(guild_id: int) -> int:
    """
    Initializes the server into the table if it doesn't already exist.

    :param int guild_id: the id of the guild/server to insert

    :return int: the database's internal ID for the server
    """

    with get_conn() as connection:
        cursor = connection.cursor()

        cursor.execute("INSERT OR IGNORE INTO servers (guild_id) VALUES (?)", (str(guild_id),))
        cursor.execute("SELECT id FROM servers WHERE guild_id = ?", (str(guild_id),))
        return cursor.fetchone()[0]

def init_user_settings(user_id: int) -> int:
    """
    Initializes the user (id) into user_settings

    :param int user_id: the Discord user id to insert into the table

    :return int: the database's internal ID for the user('s settings)
    """

    with get_conn() as connection:
        cursor = connection.cursor()

        cursor.execute("INSERT OR IGNORE INTO user_settings (user_id) VALUES (?)", (str(user_id),))
        cursor.execute("SELECT id FROM user_settings WHERE user_id = ?", (str(user_id),))
        return cursor.fetchone()[0]

def get_server_settings(guild_id: int) -> ServerSettings:
    """
    Gets a server's settings, falling back to defaults if there are none (or the database fails)

    :param int guild_id: the guild to get settings for

    :return ServerSettings: the server's language and toggles
    """

    try:
        with get_conn() as connection:
            cursor = connection.cursor()

            cursor.execute("""
                            SELECT language, disable_usernames, disable_join_leave
                            FROM servers
                            WHERE guild_id = ?
                        """, (str(guild_id),))
            row = cursor.fetchone()
    except sqlite3.Error as e:
        tsprint(f"Error fetching server settings for guild {guild_id}: {e}")
        return ServerSettings(DEFAULT_LANGUAGE)

    if not row:
        return ServerSettings(DEFAULT_LANGUAGE)

    language, disable_usernames, disable_join_leave = row
    return ServerSettings(language or DEFAULT_LANGUAGE, bool(disable_usernames), bool(disable_join_leave))

def _set_server_column(guild_id: int, column: str, value) -> None:
    init_server(guild_id)

    with get_conn() as connection:
        cursor = connection.cursor()

        # column names come from this module only, never from users
        cursor.execute(f"UPDATE servers SET {column} = ? WHERE guild_id = ?", (value, str(guild_id)))
        connection.commit()

def set_server_language(guild_id: int, language: str) -> None:
    """
    Sets the default TTS language of a server

    :param int guild_id: the guild to update
    :param str language: the language code, e.g. "en"
    """
    _set_server_column(guild_id, "language", language)

def set_disable_usernames(guild_id: int, disabled: bool) -> None:
    """
    Sets whether speaker names are left out of messages read in a server
    """
    _set_server_column(guild_id, "disable_usernames", int(disabled))

def set_disable_join_leave(guild_id: int, disabled: bool) -> None:
    """
    Sets whether join/leave announcements are skipped in a server
    """
    _set_server_column(guild_id, "disable_join_leave", int(disabled))

def set_user_language(user_id: int, language: str | None) -> None:
    """
    Sets a user's TTS language

    :param int user_id: the Discord user ID to set the language for
    :param str | None language: the language code, None to follow the server default
    """

    init_user_settings(user_id)

    with get_conn() as connection:
        cursor = connection.cursor()

        cursor.execute("""
                        UPDATE user_settings
                        SET language = ?
                        WHERE user_id = ?
                    """, (language, str(user_id)))
        connection.commit()

def get_user_language(user_id: int) -> str | None:
    """
    Gets a user's TTS language

    :param int user_id: the Discord user ID to get the language for

    :return str | None: the user's language code, None if not set
    """

    try:
        with get_conn() as connection:
            cursor = connection.cursor()

            cursor.execute("SELECT language FROM user_settings WHERE user_id = ?", (str(user_id),))
            row = cursor.fetchone()
    except sqlite3.Error as e:
        tsprint(f"Error fetching user settings for user {user_id}: {e}")
        return None

    # row could be uninitialized or language could be None
    return row[0] if row and row[0] else None

def get_effective_language(user_id: int, guild_id: int) -> str:
    """
    Gets the language a user's messages should be read in: theirs if set, otherwise the server's

    :param int user_id: the Discord user ID who wrote the message
    :param int guild_id: the guild the message is read in

    :return str: the language code to use
    """

    user_language = get_user_language(user_id)
    if user_language:
        return user_language

    return get_server_settings(guild_id).language
