from hbfl_sim.cli import main

raise SystemExit(main())
