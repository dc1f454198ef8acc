from hotbuild.cli import main

raise SystemExit(main())
