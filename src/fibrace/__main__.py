from fibrace.cli import main

raise SystemExit(main())
