#!/usr/bin/env python3
"""Profile the post-processing pipeline to find performance bottlenecks."""

import cProfile
import io
import pstats

from posthtml import ProcessingOptions, RenderContext, default_post_processor

# Sample HTML
links = "".join(
    f'<link rel="stylesheet" data-href="https://fonts.googleapis.com/css?family=Font{i}&amp;display=swap"/>'
    for i in range(20)
)
body = """
    <div class="container">
        <p>Paragraph 1</p>
        <p>Paragraph 2</p>
        <table>
            <tr><td>Cell 1</td><td>Cell 2</td></tr>
            <tr><td>Cell 3</td><td>Cell 4</td></tr>
        </table>
    </div>
""" * 100  # Repeat for more meaningful results
html = f"""<!DOCTYPE html>
<html>
<head><title>Test</title>{links}<meta name="next-font-preconnect"/></head>
<body>{body}</body>
</html>
"""

processor = default_post_processor()
context = RenderContext(resolve_font_css=lambda url: "@font-face{font-family:x;src:url(x.woff2)}")
options = ProcessingOptions(optimize_fonts=True)

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    result = processor.run_sync(html, context, options)

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
