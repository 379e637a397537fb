from searchdump.cli import main

raise SystemExit(main())
