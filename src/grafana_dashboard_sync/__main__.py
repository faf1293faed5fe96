from grafana_dashboard_sync.cli import main

raise SystemExit(main())
