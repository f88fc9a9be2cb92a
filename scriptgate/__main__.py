from scriptgate.cli import main

raise SystemExit(main())
