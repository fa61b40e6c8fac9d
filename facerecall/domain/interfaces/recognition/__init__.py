from .face_recognition import DescriptorExtractor
