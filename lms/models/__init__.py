from .user import User
from .course import Course, Module
from .lesson import Lesson
from .enrollment import Enrollment
from .progress import LessonProgress
from .certificate import Certificate
from .article import Article
from .book import Book
from .bookmark import Bookmark, ResourceRef
from .question import Question, Answer
