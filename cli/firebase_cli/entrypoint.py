from __future__ import annotations


def main() -> None:
    from .main import app

    app()


if __name__ == "__main__":
    main()
