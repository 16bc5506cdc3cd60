from __future__ import annotations
from flask import Response, current_app

from luxcars.sitemap import build_sitemap_urls, render_robots, render_sitemap


def register(bp):

    @bp.route('/sitemap.xml')
    def sitemap():
        ext = current_app.extensions
        urls = build_sitemap_urls(current_app.config.get('SITE_URL'), ext['dealers'], ext['cars'], ext['brands'])
        return Response(render_sitemap(urls), mimetype='application/xml')

    @bp.route('/robots.txt')
    def robots():
        return Response(render_robots(current_app.config.get('SITE_URL')), mimetype='text/plain')
