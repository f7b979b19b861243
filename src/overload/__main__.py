from overload.cli import main

raise SystemExit(main())
