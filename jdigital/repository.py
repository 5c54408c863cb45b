from sqlalchemy.exc import IntegrityError

from .errors import Conflict, NotFound
from .models import (
    db,
    Faq,
    Lead,
    MediaAsset,
    PortfolioProject,
    PricingPackage,
    ProcessStep,
    ProjectCategory,
    ProjectImage,
    Service,
    Testimonial,
    User,
)
from .utils import parse_int, parse_positive_int

DEFAULT_PAGE_SIZE = 10


def paginate(page=1, page_size=DEFAULT_PAGE_SIZE):
    safe_page = parse_int(page, default=1)
    if safe_page < 1:
        safe_page = 1
    safe_page_size = parse_int(page_size, default=DEFAULT_PAGE_SIZE)
    if safe_page_size < 1:
        safe_page_size = DEFAULT_PAGE_SIZE
    return {
        'take': safe_page_size,
        'skip': (safe_page - 1) * safe_page_size,
        'page': safe_page,
        'page_size': safe_page_size,
    }


class Repository:
    """Create-or-update persistence for one model.

    Every write commits once; a unique-constraint violation rolls back and
    surfaces as ``Conflict``, a missing id as ``NotFound``.
    """

    def __init__(self, model, order_by=(), label=None, conflict_message=None):
        self.model = model
        self.order_by = tuple(order_by)
        self.label = label or model.__name__
        self.conflict_message = conflict_message or f'Unable to save {self.label.lower()}. It may already exist.'

    def query(self, filters=None):
        query = self.model.query
        for criterion in filters or ():
            query = query.filter(criterion)
        return query

    def list(self, filters=None, page=None, page_size=DEFAULT_PAGE_SIZE):
        query = self.query(filters).order_by(*self.order_by)
        if page is not None:
            pagination = paginate(page, page_size)
            query = query.offset(pagination['skip']).limit(pagination['take'])
        return query.all()

    def count(self, filters=None):
        return self.query(filters).count()

    def get(self, id):
        parsed_id = parse_positive_int(id)
        item = db.session.get(self.model, parsed_id) if parsed_id else None
        if item is None:
            raise NotFound(f'{self.label} not found.')
        return item

    def commit(self):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict(self.conflict_message)

    def _write(self, id, values):
        if id:
            item = self.get(id)
            for key, value in values.items():
                setattr(item, key, value)
        else:
            item = self.model(**values)
            db.session.add(item)
        return item

    def create(self, values):
        item = self._write(None, values)
        self.commit()
        return item

    def update(self, id, values):
        item = self._write(id, values)
        self.commit()
        return item

    def save(self, id, values):
        item = self._write(id, values)
        self.commit()
        return item

    def delete(self, id):
        item = self.get(id)
        db.session.delete(item)
        self.commit()


class PortfolioRepository(Repository):
    def save(self, id, values, gallery=None):
        item = self._write(id, values)
        if gallery is not None:
            # delete-orphan cascade removes the previous rows in the same flush
            item.images = [
                ProjectImage(url=url, position=index)
                for index, url in enumerate(gallery, start=1)
            ]
        self.commit()
        return item


class PricingRepository(Repository):
    def save(self, id, values):
        current = self.get(id) if id else None
        if values.get('is_popular'):
            others = PricingPackage.query.filter(PricingPackage.is_popular.is_(True))
            if current is not None:
                others = others.filter(PricingPackage.id != current.id)
            others.update({PricingPackage.is_popular: False})
        item = self._write(id, values)
        self.commit()
        return item


services = Repository(
    Service,
    order_by=(Service.position.asc(), Service.created_at.asc()),
    label='Service',
    conflict_message='Unable to save service. Slug may already exist.',
)
portfolio = PortfolioRepository(
    PortfolioProject,
    order_by=(PortfolioProject.position.asc(), PortfolioProject.created_at.desc()),
    label='Project',
    conflict_message='Unable to save project. Slug may already exist.',
)
categories = Repository(
    ProjectCategory,
    order_by=(ProjectCategory.position.asc(), ProjectCategory.created_at.asc()),
    label='Category',
    conflict_message='Unable to save category. Name or slug may already exist.',
)
process_steps = Repository(
    ProcessStep,
    order_by=(ProcessStep.position.asc(), ProcessStep.created_at.asc()),
    label='Process step',
)
pricing = PricingRepository(
    PricingPackage,
    order_by=(PricingPackage.position.asc(), PricingPackage.created_at.asc()),
    label='Package',
    conflict_message='Unable to save pricing package. Slug may already exist.',
)
faqs = Repository(
    Faq,
    order_by=(Faq.position.asc(), Faq.created_at.asc()),
    label='FAQ',
)
testimonials = Repository(
    Testimonial,
    order_by=(Testimonial.position.asc(), Testimonial.created_at.asc()),
    label='Testimonial',
)
leads = Repository(
    Lead,
    order_by=(Lead.created_at.desc(), Lead.id.desc()),
    label='Lead',
)
media = Repository(
    MediaAsset,
    order_by=(MediaAsset.created_at.desc(), MediaAsset.id.desc()),
    label='Media',
)
users = Repository(
    User,
    order_by=(User.created_at.asc(), User.id.asc()),
    label='User',
    conflict_message='Unable to create user. Email may already exist.',
)
