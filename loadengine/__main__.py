from loadengine.cli import main

raise SystemExit(main())
