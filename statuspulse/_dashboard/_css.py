"""CSS styles for the status page.

This module contains all CSS styles embedded in the dashboard HTML.
"""

CSS_STYLES = """
        :root {
            --bg: #f6f7f9;
            --bg-panel: #ffffff;
            --text: #1f2328;
            --text-dim: #59636e;
            --border: #d8dee4;
            --up: #2da44e;
            --degraded: #d4a72c;
            --down: #cf222e;
            --unknown: #c4c9cf;
            --gutter: 20px;
            --radius: 8px;
        }

        @media (prefers-color-scheme: dark) {
            :root {
                --bg: #0d1117;
                --bg-panel: #161b22;
                --text: #e6edf3;
                --text-dim: #9198a1;
                --border: #30363d;
                --unknown: #3d444d;
            }
        }

        * { margin: 0; padding: 0; box-sizing: border-box; }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
            background: var(--bg);
            color: var(--text);
            min-height: 100vh;
            line-height: 1.5;
        }

        main {
            max-width: 880px;
            margin: 0 auto;
            padding: 32px var(--gutter) 48px;
        }

        header.page-header { margin-bottom: 24px; }
        header.page-header h1 { font-size: 1.75rem; font-weight: 600; }
        header.page-header p { color: var(--text-dim); }

        .overall {
            display: flex;
            align-items: center;
            gap: 12px;
            padding: 16px 20px;
            border-radius: var(--radius);
            color: #ffffff;
            font-weight: 600;
            font-size: 1.125rem;
            background: var(--unknown);
            margin-bottom: 24px;
        }
        .overall.operational { background: var(--up); }
        .overall.degraded { background: var(--degraded); }
        .overall.down { background: var(--down); }
        .overall.unknown { color: var(--text); }

        .panel {
            background: var(--bg-panel);
            border: 1px solid var(--border);
            border-radius: var(--radius);
            margin-bottom: 24px;
        }

        .service {
            padding: 16px 20px;
            border-bottom: 1px solid var(--border);
        }
        .service:last-child { border-bottom: none; }

        .service-header {
            display: flex;
            justify-content: space-between;
            align-items: baseline;
            gap: 12px;
            margin-bottom: 8px;
        }
        .service-name { font-weight: 600; }
        .service-name a { color: inherit; text-decoration: none; }
        .service-name a:hover { text-decoration: underline; }

        .service-state { font-size: 0.875rem; font-weight: 600; }
        .service-state.up { color: var(--up); }
        .service-state.degraded { color: var(--degraded); }
        .service-state.down { color: var(--down); }
        .service-state.unknown { color: var(--text-dim); }

        .strip {
            display: flex;
            gap: 2px;
            height: 32px;
        }
        .strip .day {
            flex: 1;
            border-radius: 2px;
            background: var(--unknown);
        }
        .strip .day.up { background: var(--up); }
        .strip .day.degraded { background: var(--degraded); }
        .strip .day.down { background: var(--down); }
        .strip .day:hover { opacity: 0.7; }

        .strip-legend {
            display: flex;
            justify-content: space-between;
            font-size: 0.75rem;
            color: var(--text-dim);
            margin-top: 4px;
        }

        .service-meta {
            font-size: 0.8125rem;
            color: var(--text-dim);
            margin-top: 4px;
        }
        .service-meta .error { color: var(--down); }

        h2.section-title {
            font-size: 1.25rem;
            font-weight: 600;
            margin-bottom: 12px;
        }

        .incident-day { padding: 16px 20px; border-bottom: 1px solid var(--border); }
        .incident-day:last-child { border-bottom: none; }
        .incident-day h3 { font-size: 1rem; margin-bottom: 6px; }
        .incident-day ul { list-style: none; }
        .incident-day li { font-size: 0.875rem; color: var(--text-dim); padding: 2px 0; }
        .incident-day li strong { color: var(--text); }

        .empty { padding: 16px 20px; color: var(--text-dim); }

        .error-state {
            padding: 16px 20px;
            border: 1px solid var(--down);
            border-radius: var(--radius);
            color: var(--down);
            margin-bottom: 24px;
        }

        footer.page-footer {
            font-size: 0.8125rem;
            color: var(--text-dim);
            text-align: center;
        }
        footer.page-footer a { color: inherit; }

        [hidden] { display: none !important; }
"""
