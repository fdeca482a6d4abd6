from __future__ import annotations

from pathlib import Path

from epubgrab import download_book, parse_args, settings_from_args, validate_args
from epubgrab.ui import ConsoleUI


def main() -> None:
    args = parse_args()
    validate_args(args)

    ui = ConsoleUI()

    try:
        download_book(
            listing_url=args.url,
            output_directory=Path(args.output),
            settings=settings_from_args(args),
            ui=ui,
        )
    except KeyboardInterrupt:
        ui.log_event("Download interrupted by user.", level="error")
        raise SystemExit("Download interrupted by user.")
    except Exception as exc:
        ui.log_event(str(exc), level="error")
        raise SystemExit(str(exc)) from None
    finally:
        ui.finalize()


if __name__ == "__main__":
    main()
