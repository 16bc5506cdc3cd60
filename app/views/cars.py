from __future__ import annotations
from flask import abort, current_app, render_template

from luxcars.cars import generate_car_slug, parse_car_slug


def register(bp):

    @bp.route('/cars/<slug>')
    def car_detail(slug: str):
        car_id = parse_car_slug(slug)
        if car_id is None:
            abort(404)
        car = current_app.extensions['cars'].get_car_by_id(car_id)
        if car is None:
            abort(404)
        return render_template('car.html', car=car, canonical_slug=generate_car_slug(car))
