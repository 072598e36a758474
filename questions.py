from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

MAX_OPTIONS = 4
MAX_OPTION_INDEX = MAX_OPTIONS - 1
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".svg", ".gif")
DEFAULT_OPTION_EMOJIS: Tuple[str, ...] = ("😤", "😌", "🤔", "😊")
DEFAULT_PROMPT = "You would..."
DEFAULT_REVEAL_SUBTITLE = "Your campus life calls for..."


class Trait(str, Enum):
    """The four trait tags an option can carry."""

    C = "C"
    P = "P"
    F = "F"
    L = "L"


TRAIT_ORDER: Tuple[Trait, ...] = (Trait.C, Trait.P, Trait.F, Trait.L)


class QuestionKind(str, Enum):
    PLAIN = "plain"
    SHARED_SUB = "shared_sub"
    PER_OPTION_SUB = "per_option_sub"


def is_image_path(value: Optional[str]) -> bool:
    if not value:
        return False
    lowered = value.lower()
    return "/" in lowered or lowered.endswith(IMAGE_EXTENSIONS)


def _traits(codes: str) -> Tuple[Trait, ...]:
    # Trait(code) raises ValueError for anything outside the alphabet
    return tuple(Trait(code) for code in codes)


@dataclass(frozen=True)
class Reward:
    name: str
    desc: str
    img: str
    extra_text: Optional[str] = None


@dataclass(frozen=True)
class SubQuestion:
    text: str
    prompt: str
    options: Tuple[str, ...]
    rewards: Tuple[Reward, ...]
    types: Tuple[Trait, ...] = ()
    option_emojis: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()  # card image per *parent* option, shared sub-questions only
    reveal_subtitle: Optional[str] = None

    def __post_init__(self):
        _check_option_shape(self.options, self.rewards, self.types)


@dataclass(frozen=True)
class Question:
    index: int
    text: str
    options: Tuple[str, ...]
    rewards: Tuple[Reward, ...]
    types: Tuple[Trait, ...] = ()
    prompt: str = DEFAULT_PROMPT
    option_emojis: Tuple[str, ...] = ()
    sub_question: Optional[SubQuestion] = None
    sub_questions: Tuple[SubQuestion, ...] = ()
    reveal_subtitle: Optional[str] = None

    def __post_init__(self):
        _check_option_shape(self.options, self.rewards, self.types)
        if self.sub_question is not None and self.sub_questions:
            raise ValueError(f"Question {self.number} declares both a shared and per-option sub-questions")
        if self.sub_questions and len(self.sub_questions) != len(self.options):
            raise ValueError(f"Question {self.number} needs one sub-question per option")

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def kind(self) -> QuestionKind:
        if self.sub_questions:
            return QuestionKind.PER_OPTION_SUB
        if self.sub_question is not None:
            return QuestionKind.SHARED_SUB
        return QuestionKind.PLAIN

    def sub_question_for(self, parent_index: int) -> Optional[SubQuestion]:
        kind = self.kind
        if kind is QuestionKind.PER_OPTION_SUB:
            return self.sub_questions[parent_index]
        if kind is QuestionKind.SHARED_SUB:
            return self.sub_question
        return None

    def readable_option(self, index: int) -> str:
        """Human-readable answer for a recorded option index."""
        kind = self.kind
        if kind is QuestionKind.PER_OPTION_SUB:
            labels = [sub.options[index] for sub in self.sub_questions if 0 <= index < len(sub.options)]
            return " / ".join(labels) if labels else f"Unknown ({index})"
        options = self.sub_question.options if kind is QuestionKind.SHARED_SUB else self.options
        if 0 <= index < len(options):
            return options[index]
        return f"Unknown ({index})"


def _check_option_shape(options, rewards, types) -> None:
    if not 2 <= len(options) <= MAX_OPTIONS:
        raise ValueError(f"Expected 2-{MAX_OPTIONS} options, got {len(options)}")
    if len(options) != len(rewards):
        raise ValueError("options and rewards must be parallel")
    if types and len(types) != len(options):
        raise ValueError("types must be parallel to options")


def readable_answer(questions: List[Question], question_index: int, option_index: int) -> str:
    if 0 <= question_index < len(questions):
        return questions[question_index].readable_option(option_index)
    return f"Unknown ({option_index})"


QUESTIONS: List[Question] = [
    Question(
        index=0,
        text="Registration opens at 8:00 and the system crashes at 8:01.",
        options=(
            "Absolutely not okay",
            "Let it be",
            "Question the whole system",
            "No worries, I have a plan B",
        ),
        rewards=(
            Reward("Power Bank", "Refresh until the server gives up before you do.", "🔋"),
            Reward("Neck Pillow", "Nap now, register later.", "😴"),
            Reward("Magnifying Glass", "Every bug report needs a detective.", "🔍"),
            Reward("Backup Timetable", "Three schedules deep, all colour coded.", "🗂️"),
        ),
        types=_traits("PCFP"),
    ),
    Question(
        index=1,
        text="A stray campus cat blocks the path to your lecture hall.",
        options=(
            "Walk up and say hi",
            "Pull out the electric pan you carry everywhere",
            "Walk around it",
            "Why does this always happen to me",
        ),
        rewards=(
            Reward("Cat Treats", "The fastest way to a friend.", "🐟"),
            Reward("Electric Pan", "Snacks for you, not for the cat.", "🍳"),
            Reward("Detour Map", "There is always another way round.", "🗺️"),
            Reward("Umbrella", "Just in case it gets worse.", "☂️"),
        ),
        types=_traits("LFCP"),
        sub_question=SubQuestion(
            text="The cat stares back at you.",
            prompt="It meows. You...",
            options=("Meow back", "Take a selfie", "Offer your snack", "Sprint to class"),
            rewards=(
                Reward("Cat Whisperer Badge", "Fluent in meow.", "🐱", extra_text="The cat follows you home."),
                Reward("Selfie Stick", "Content for the group chat.", "🤳"),
                Reward("Snack Pouch", "Sharing is caring.", "🥨"),
                Reward("Running Shoes", "Attendance matters.", "👟"),
            ),
            types=_traits("LFCP"),
            images=("😺", "🍳", "🐈", "🙀"),
        ),
    ),
    Question(
        index=2,
        text="The library wifi drops right before the submission deadline.",
        options=(
            "Tether from my own phone",
            "Toggle the wifi 22 times",
            "Why must it end with me",
            "If it won't work, I won't either",
        ),
        rewards=(
            Reward("Unlimited Data Plan", "Self reliance, 5G edition.", "📶"),
            Reward("Lucky Charm", "Persistence is a strategy.", "🍀"),
            Reward("Philosophy Notes", "Big questions for a small router.", "📓"),
            Reward("Hammock", "Deadlines are a social construct.", "🛏️"),
        ),
        types=_traits("PFLC"),
    ),
    Question(
        index=3,
        text="Friday evening, no plans yet. Where do you end up?",
        options=("Night market", "Dorm room", "Rooftop party", "Study room"),
        rewards=(
            Reward("(follow-up)", "", "🌙"),
            Reward("(follow-up)", "", "🏠"),
            Reward("(follow-up)", "", "🎉"),
            Reward("(follow-up)", "", "📚"),
        ),
        sub_questions=(
            SubQuestion(
                text="The night market is packed.",
                prompt="First stop?",
                options=("Grilled squid", "Bubble tea", "Second-hand books", "People watching"),
                rewards=(
                    Reward("Tissue Pack", "Sauce happens.", "🧻"),
                    Reward("Reusable Cup", "For the daily boba.", "🧋"),
                    Reward("Tote Bag", "Room for one more book.", "👜"),
                    Reward("Camping Stool", "Front row seat to everything.", "🪑"),
                ),
                types=_traits("FLPC"),
            ),
            SubQuestion(
                text="Your roommate is out for the night.",
                prompt="You finally get to...",
                options=("Binge a series", "Deep clean", "Cook something ambitious", "Sleep at 8 pm"),
                rewards=(
                    Reward("Streaming Account", "Next episode starts in 5.", "📺"),
                    Reward("Label Maker", "Everything has a place.", "🏷️"),
                    Reward("Rice Cooker", "Dorm chef certified.", "🍚"),
                    Reward("Eye Mask", "Do not disturb.", "😴"),
                ),
                types=_traits("CPFC"),
            ),
            SubQuestion(
                text="The music is loud and the view is great.",
                prompt="You spend the night...",
                options=("On the dance floor", "At the snack table", "Meeting everyone", "Organising the playlist"),
                rewards=(
                    Reward("Glow Sticks", "Visible from the next building.", "🪩"),
                    Reward("Takeaway Box", "For the leftovers.", "🥡"),
                    Reward("Name Cards", "Networking, but fun.", "📇"),
                    Reward("Bluetooth Speaker", "You control the vibe.", "🔊"),
                ),
                types=_traits("LFLP"),
            ),
            SubQuestion(
                text="The study room is quiet. Too quiet.",
                prompt="You actually...",
                options=("Finish the readings", "Doodle in the margins", "Start a study group", "Fall asleep on the desk"),
                rewards=(
                    Reward("Highlighters", "Five colours, one system.", "🖍️"),
                    Reward("Sketchbook", "Lecture notes, illustrated.", "✏️"),
                    Reward("Whiteboard", "Everyone is invited.", "📋"),
                    Reward("Desk Pillow", "Power nap station.", "💤"),
                ),
                types=_traits("PFLC"),
            ),
        ),
    ),
    Question(
        index=4,
        text="The lecture hall air conditioner is set to arctic.",
        options=(
            "Fight the cold",
            "Give up and study somewhere else",
            "Wonder who set it this low",
            "Sit tight, I'll get used to it",
        ),
        rewards=(
            Reward("Hoodie", "Permanent campus uniform.", "🧥"),
            Reward("Cafe Loyalty Card", "Ninth coffee is free.", "☕"),
            Reward("Thermometer", "Data before complaints.", "🌡️"),
            Reward("Blanket", "Wrap up and carry on.", "🧣"),
        ),
        types=_traits("PLFC"),
    ),
    Question(
        index=5,
        text="Your friend's dog runs toward you across the lawn.",
        options=(
            "Belly rubs, obviously",
            "Run to meet it",
            "Say hi in your best dog voice",
            "Break into a victory dance",
        ),
        rewards=(
            Reward("Lint Roller", "Fur is a fashion choice.", "🐶"),
            Reward("Frisbee", "Fetch is a team sport.", "🥏"),
            Reward("Dog Biscuits", "Friends for life.", "🦴"),
            Reward("Party Hat", "Every moment is a celebration.", "🥳"),
        ),
        types=_traits("CLFL"),
    ),
    Question(
        index=6,
        text="The campus shuttle arrives already full.",
        options=(
            "Stand the whole way",
            "Never manage to get on",
            "Wait with hope in my heart",
            "Got on, but how do I get off",
        ),
        rewards=(
            Reward("Grip Gloves", "Balance level: expert.", "🧤"),
            Reward("Bicycle", "Freedom on two wheels.", "🚲"),
            Reward("Pocket Novel", "Waiting is reading time.", "📖"),
            Reward("Campus Map", "Know your stops.", "🗺️"),
        ),
        types=_traits("PLCF"),
    ),
    Question(
        index=7,
        text="Midterms are next week.",
        options=(
            "Revision timetable, already printed",
            "Cram the night before",
            "Study while snacking",
            "Host a group revision party",
        ),
        rewards=(
            Reward("Planner", "Every hour accounted for.", "📅"),
            Reward("Energy Drink", "Tomorrow's problem.", "🥤"),
            Reward("Snack Box", "Brain food, technically.", "🍪"),
            Reward("Pizza Voucher", "Fuel for the study party.", "🍕"),
        ),
        types=_traits("PCFL"),
    ),
    Question(
        index=8,
        text="A free afternoon between classes.",
        options=(
            "Nap under a tree",
            "Try the new canteen stall",
            "Join a club fair",
            "Get ahead on assignments",
        ),
        rewards=(
            Reward("Picnic Mat", "Shade and silence.", "🌳"),
            Reward("Chopsticks", "Always ready to taste.", "🥢"),
            Reward("Club Badge", "Joined four, attends five.", "📛"),
            Reward("Laptop Stand", "Productivity posture.", "💻"),
        ),
        types=_traits("CFLP"),
    ),
    Question(
        index=9,
        text="The campus festival lineup is out. What makes you go?",
        options=(
            "My favourite band is playing",
            "A photo exhibition",
            "Games with friends",
            "The food market",
        ),
        rewards=(
            Reward("Earplugs", "Front row, still protected.", "🎸"),
            Reward("Film Camera", "Every moment on 35mm.", "📷"),
            Reward("Friendship Bracelet", "Matching, of course.", "🧶"),
            Reward("Tote Full of Snacks", "Tasting every stall.", "🍢", extra_text="Bonus: free dessert coupon!"),
        ),
        types=_traits("LCLF"),
    ),
]

TOTAL_QUESTIONS = len(QUESTIONS)
