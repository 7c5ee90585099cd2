"""Create the fortune media tables in DATABASE_URL."""

from src.fortune_media.config import load_config


def main() -> None:
    config = load_config()
    print(f"Database initialized: {config.engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    main()
